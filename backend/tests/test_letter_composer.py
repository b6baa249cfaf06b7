"""
Letter Composer Tests

Verifies:
1. Tokens are substituted in one pass from the canonical context
2. No machine placeholder survives in composed content
3. Issue selection and (bureau, type) grouping
4. Structural and minimal fallbacks always produce a letter
"""

import re
import pytest
from datetime import date
from unittest.mock import MagicMock

from credit_dispute.models.ssot import (
    AccountRef,
    Bureau,
    BureausPresent,
    Issue,
    IssueType,
    PersonalInfo,
    ReportModel,
    Resolution,
    Severity,
)
from credit_dispute.services.audit.engine import classify_report
from credit_dispute.services.letter_generator import (
    LetterComposer,
    LetterTemplateResolver,
    StaticTemplateSource,
    TemplateCache,
    build_template,
    format_letter_date,
    generate_letters,
    select_dispute_issues,
)
from credit_dispute.services.parsing import parse_report_text
from credit_dispute.services.parsing.sample_data import SAMPLE_REPORT_TEXT


AS_OF = date(2024, 3, 1)

CURLY_TOKEN_RE = re.compile(r"\{[^}]*\}")
BRACKET_TOKEN_RE = re.compile(r"\[[A-Z0-9_]+\]")


# =============================================================================
# FIXTURES
# =============================================================================

def _composer(*templates) -> LetterComposer:
    cache = TemplateCache([StaticTemplateSource(list(templates))])
    return LetterComposer(resolver=LetterTemplateResolver(cache), as_of=AS_OF)


def _issue(issue_type=IssueType.COLLECTION, severity=Severity.HIGH, account="Chase", bureau=None) -> Issue:
    return Issue(
        type=issue_type,
        title=f"{issue_type.value} on {account}",
        description=f"The account {account} is reported inaccurately.",
        severity=severity,
        account=AccountRef(account_name=account, account_number="XXXX1234") if account else None,
        bureau=bureau,
    )


@pytest.fixture
def report():
    return ReportModel(
        bureaus_present=BureausPresent(experian=True),
        primary_bureau=Bureau.EXPERIAN,
        personal_info=PersonalInfo(name="JOHN DOE", address="12 OAK ST", city="AUSTIN", state="TX", zip_code="78701"),
        report_number="EXP-1001",
    )


@pytest.fixture
def sample_report():
    return classify_report(parse_report_text(SAMPLE_REPORT_TEXT), as_of=AS_OF)


def _assert_no_machine_tokens(content: str):
    assert content.strip()
    assert not CURLY_TOKEN_RE.search(content), content
    assert not BRACKET_TOKEN_RE.search(content), content


# =============================================================================
# SUBSTITUTION
# =============================================================================

class TestSubstitution:
    """Template token replacement."""

    def test_account_name_substituted(self, report):
        template = build_template("Collection Letter", "Please validate {ACCOUNT_NAME}.", "collection")
        letter = _composer(template).compose(report, [_issue()], Bureau.EXPERIAN)

        assert "Chase" in letter.content
        assert "{ACCOUNT_NAME}" not in letter.content
        assert letter.resolution == Resolution.EXACT
        assert letter.template_name == "Collection Letter"

    def test_all_token_forms(self, report):
        body = (
            "{{YOUR NAME}}\n{Address}\n[CITY_STATE_ZIP]\n\n{DATE}\n\n{BUREAU_ADDRESS}\n\n"
            "Account: [ACCOUNT NAME] #[ACCOUNT_NUMBER]\nReport: {report_number}"
        )
        letter = _composer(build_template("General", body, "general")).compose(report, [_issue()], Bureau.EXPERIAN)

        assert letter.content.startswith("JOHN DOE\n12 OAK ST\nAUSTIN, TX 78701")
        assert "March 1, 2024" in letter.content
        assert "P.O. Box 4500" in letter.content
        assert "Account: Chase #XXXX1234" in letter.content
        assert "Report: EXP-1001" in letter.content
        assert letter.resolution == Resolution.GENERIC

    def test_unknown_tokens_removed(self, report):
        body = "Dear {BUREAU_NAME},\n{SOME_UNKNOWN} [MACHINE_TOKEN] {{ }}\nDisputed: {ACCOUNT_NAME}"
        letter = _composer(build_template("General", body, "general")).compose(report, [_issue()], Bureau.EXPERIAN)

        _assert_no_machine_tokens(letter.content)
        assert "Dear Experian," in letter.content

    def test_unknown_spaced_tokens_removed(self, report):
        body = "Dear {BUREAU_NAME}, [INSERT ACCOUNT HISTORY] about {ACCOUNT_NAME}."
        letter = _composer(build_template("General", body, "general")).compose(report, [_issue()], Bureau.EXPERIAN)

        assert "[INSERT ACCOUNT HISTORY]" not in letter.content
        assert "Dear Experian,  about Chase." in letter.content

    def test_consumer_prompts_kept_when_unknown(self):
        body = "[YOUR NAME]\n[YOUR ADDRESS]\n\nI dispute {ACCOUNT_NAME}."
        letter = _composer(build_template("General", body, "general")).compose(
            ReportModel(), [_issue()], None,
        )

        assert "[YOUR NAME]" in letter.content
        assert "[YOUR ADDRESS]" in letter.content
        _assert_no_machine_tokens(letter.content)

    def test_values_are_not_rescanned(self, report):
        template = build_template("Collection Letter", "Account: {ACCOUNT_NAME}", "collection")
        letter = _composer(template).compose(report, [_issue(account="{ACCOUNT_NUMBER} [DATE]")], Bureau.EXPERIAN)

        assert "XXXX1234" not in letter.content
        _assert_no_machine_tokens(letter.content)

    def test_list_blocks(self, report):
        template = build_template("Late Letter", "Late accounts:\n{LATE_PAYMENT_ACCOUNTS}", "late_payment")
        letter = _composer(template).compose(
            report, [_issue(IssueType.LATE_PAYMENT, account="NAVIENT")], Bureau.EXPERIAN,
        )

        assert "- NAVIENT (Account #XXXX1234): The account NAVIENT is reported inaccurately." in letter.content

    def test_template_rendering_empty_uses_structural(self, report):
        letter = _composer(build_template("Broken", "{NOTHING_KNOWN}", "collection")).compose(
            report, [_issue()], Bureau.EXPERIAN,
        )

        assert letter.resolution == Resolution.STRUCTURAL
        assert "To Whom It May Concern:" in letter.content


# =============================================================================
# FALLBACKS
# =============================================================================

class TestFallbacks:
    """Structural skeleton and minimal letter."""

    def test_structural_letter_sections(self, report):
        letter = _composer().compose(report, [_issue()], Bureau.EXPERIAN)
        content = letter.content

        assert letter.resolution == Resolution.STRUCTURAL
        assert letter.template_name is None
        assert content.startswith("JOHN DOE\n12 OAK ST\nAUSTIN, TX 78701")
        assert "Report Number: EXP-1001" in content
        assert "Disputed items:\n- Chase (Account #XXXX1234)" in content
        assert "15 U.S.C." in content
        assert content.index("To Whom It May Concern:") < content.index("Sincerely,")
        _assert_no_machine_tokens(content)

    def test_minimal_letter_on_failure(self, report):
        resolver = MagicMock()
        resolver.resolve.side_effect = ValueError("corpus exploded")
        composer = LetterComposer(resolver=resolver, as_of=AS_OF)

        letter = composer.compose(report, [_issue()], Bureau.EQUIFAX)

        assert letter.resolution == Resolution.MINIMAL
        assert letter.content.startswith("Equifax Information Services LLC")
        assert "the account Chase" in letter.content
        assert letter.content.endswith("Sincerely,\n\nJOHN DOE")

    def test_letter_metadata(self, report):
        issue = _issue()
        letter = _composer().compose(report, [issue], Bureau.EXPERIAN)

        assert letter.bureau == "Experian"
        assert letter.account_name == "Chase"
        assert letter.account_number == "XXXX1234"
        assert letter.error_type == "collection"
        assert letter.issue_ids == (issue.issue_id,)
        assert letter.status.value == "draft"


# =============================================================================
# SELECTION AND GROUPING
# =============================================================================

class TestSelection:
    """select_dispute_issues()."""

    def test_high_capped_at_five(self):
        issues = [_issue() for _ in range(7)]
        assert len(select_dispute_issues(issues)) == 5

    def test_medium_tops_up_to_three(self):
        issues = [_issue()] + [_issue(severity=Severity.MEDIUM) for _ in range(4)]
        selected = select_dispute_issues(issues)

        assert [i.severity for i in selected] == [Severity.HIGH, Severity.MEDIUM, Severity.MEDIUM]

    def test_no_medium_when_enough_high(self):
        issues = [_issue() for _ in range(4)] + [_issue(severity=Severity.MEDIUM)]
        assert all(i.severity == Severity.HIGH for i in select_dispute_issues(issues))

    def test_low_only_takes_first_three(self):
        issues = [_issue(severity=Severity.LOW) for _ in range(4)]
        assert select_dispute_issues(issues) == issues[:3]

    def test_empty(self):
        assert select_dispute_issues([]) == []


class TestGenerateLetters:
    """generate_letters()."""

    def test_sample_report_letters(self, sample_report):
        letters = generate_letters(sample_report, composer=_composer())

        # four high-severity issue types, all reported by TransUnion
        assert len(letters) == 4
        assert {letter.error_type for letter in letters} == {"collection", "late_payment", "duplicate_account", "bankruptcy"}
        for letter in letters:
            assert letter.bureau == "TransUnion"
            assert "JANE Q SAMPLE" in letter.content
            _assert_no_machine_tokens(letter.content)

    def test_grouping_by_bureau_and_type(self, report):
        issues = [
            _issue(account="Chase", bureau=Bureau.EQUIFAX),
            _issue(account="Citi", bureau=Bureau.EQUIFAX),
            _issue(account="Chase", bureau=Bureau.TRANSUNION),
        ]
        letters = generate_letters(report, issues=issues, composer=_composer())

        assert [(letter.bureau, len(letter.issue_ids)) for letter in letters] == [("Equifax", 2), ("TransUnion", 1)]

    def test_no_issues_goes_to_primary_bureau(self, report):
        letters = generate_letters(report, issues=[], composer=_composer())

        assert len(letters) == 1
        assert letters[0].bureau == "Experian"
        assert letters[0].error_type == "general"
        assert letters[0].content.strip()

    def test_no_issues_no_bureau(self):
        letters = generate_letters(ReportModel(), composer=_composer())

        assert len(letters) == 1
        assert letters[0].bureau == "Credit Bureau"
        assert "[BUREAU ADDRESS]" in letters[0].content
        _assert_no_machine_tokens(letters[0].content)

    def test_no_issues_each_present_bureau(self):
        report = ReportModel(bureaus_present=BureausPresent(experian=True, equifax=True))
        letters = generate_letters(report, composer=_composer())

        assert sorted(letter.bureau for letter in letters) == ["Equifax", "Experian"]


def test_format_letter_date():
    assert format_letter_date(date(2026, 10, 7)) == "October 7, 2026"
