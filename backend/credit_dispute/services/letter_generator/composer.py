"""
Credit Dispute Engine - Letter Composer

Turns a group of Issues into a final Letter:
1. Build the canonical context from the report, the issues and the bureau
2. Resolve a template (exact -> partial -> generic -> structural)
3. Substitute tokens in one pass; inserted values are never rescanned
4. Fall back to the structural skeleton, then to a minimal letter

Content is never empty and never contains a template token the context
does not recognize. Fill-in prompts such as [YOUR NAME] only appear as
context values for consumer fields the report lacks.
"""
from __future__ import annotations
import logging
import re
from collections import OrderedDict
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from ...models.ssot import (
    Account, Bureau, Issue, IssueType, Letter, LetterStatus, ReportModel, Resolution, Severity,
)
from ..legal.citations import LegalReferenceResolver
from .bureau_profiles import get_bureau_address, get_bureau_name
from .resolver import LetterTemplateResolver
from .templates import (
    CONSUMER_PROMPTS, GENERAL_TYPE, LIST_BLOCK_KEYS, TOKEN_ALIASES, TOKEN_RE,
    normalize_token, render_structural_letter,
)

logger = logging.getLogger(__name__)


MAX_HIGH_ISSUES = 5
MAX_SELECTED_ISSUES = 3

_MACHINE_BRACKET_RE = re.compile(r"\[([A-Z][A-Z0-9_]*)\]")


def format_letter_date(value: date) -> str:
    """'October 7, 2026'."""
    return f"{value:%B} {value.day}, {value.year}"


def _clean_value(value: Optional[object]) -> str:
    """Report-derived values must not introduce placeholder syntax."""
    if value is None:
        return ""
    text = str(value).replace("{", "(").replace("}", ")")
    return _MACHINE_BRACKET_RE.sub(r"\1", text).strip()


def select_dispute_issues(issues: Sequence[Issue]) -> List[Issue]:
    """
    Up to five high-severity issues, topped up with medium ones to three.
    When that selects nothing, the first three issues.
    """
    high = [i for i in issues if i.severity == Severity.HIGH][:MAX_HIGH_ISSUES]
    medium = [i for i in issues if i.severity == Severity.MEDIUM][:max(0, MAX_SELECTED_ISSUES - len(high))]
    selected = high + medium
    if not selected and issues:
        logger.debug("No high or medium issues; using the first available issues")
        selected = list(issues[:MAX_SELECTED_ISSUES])
    logger.info(f"Selected {len(selected)} of {len(issues)} issues for letters")
    return selected


class LetterComposer:
    """Composes one Letter per call."""

    def __init__(
        self,
        resolver: Optional[LetterTemplateResolver] = None,
        legal_resolver: Optional[LegalReferenceResolver] = None,
        as_of: Optional[date] = None,
    ):
        self.resolver = resolver or LetterTemplateResolver()
        self.legal_resolver = legal_resolver or LegalReferenceResolver()
        self.as_of = as_of

    # =========================================================================
    # PUBLIC
    # =========================================================================

    def compose(self, report: Optional[ReportModel], issues: Sequence[Issue], bureau: Optional[Bureau]) -> Letter:
        report = report or ReportModel()
        issues = list(issues)
        error_type = issues[0].type.value if issues else GENERAL_TYPE
        lead = issues[0] if issues else None
        account_name = lead.account.account_name if lead and lead.account else None
        account_number = lead.account.account_number if lead and lead.account else None
        bureau_name = get_bureau_name(bureau)

        try:
            context = self.build_context(report, issues, bureau)
            content, resolution, template_name = self._render(context, error_type)
        except (KeyError, ValueError, TypeError, AttributeError) as exc:
            logger.exception(f"Letter composition failed for {bureau_name}: {exc}")
            content, resolution, template_name = "", Resolution.MINIMAL, None

        if not content.strip():
            logger.warning(f"Empty letter content for {bureau_name}; using minimal letter")
            content = self.minimal_letter(report, bureau, account_name)
            resolution, template_name = Resolution.MINIMAL, None

        return Letter(
            title=self._title(issues, account_name, bureau_name),
            content=content,
            bureau=bureau_name,
            account_name=account_name,
            account_number=account_number,
            error_type=error_type,
            status=LetterStatus.DRAFT,
            resolution=resolution,
            template_name=template_name,
            issue_ids=tuple(i.issue_id for i in issues),
        )

    def minimal_letter(self, report: Optional[ReportModel], bureau: Optional[Bureau], account_name: Optional[str] = None) -> str:
        """Last resort: bureau, one dispute sentence, signature."""
        name = report.personal_info.name if report and report.personal_info.name else CONSUMER_PROMPTS["consumer_name"]
        subject = f"the account {_clean_value(account_name)}" if account_name else "information in my credit file"
        return (
            f"{get_bureau_address(bureau)}\n\n"
            f"{format_letter_date(self._today())}\n\n"
            f"To Whom It May Concern:\n\n"
            f"I dispute the accuracy of {subject} and request that you investigate it and "
            f"correct or delete anything that cannot be verified, as required by FCRA Section 611.\n\n"
            f"Sincerely,\n\n{_clean_value(name) or CONSUMER_PROMPTS['consumer_name']}"
        )

    def build_context(self, report: ReportModel, issues: Sequence[Issue], bureau: Optional[Bureau]) -> Dict[str, str]:
        """Canonical context key -> rendered value. Missing data renders as ''."""
        info = report.personal_info
        lead = issues[0] if issues else None

        locality = " ".join(filter(None, [
            f"{info.city}," if info.city and (info.state or info.zip_code) else info.city,
            info.state, info.zip_code,
        ]))

        citations = []
        for issue in issues:
            citations.extend(issue.legal_citations or self.legal_resolver.resolve(issue.type))
        if not citations:
            citations = self.legal_resolver.resolve(GENERAL_TYPE)

        context: Dict[str, str] = {
            "consumer_name": _clean_value(info.name) or CONSUMER_PROMPTS["consumer_name"],
            "consumer_address": _clean_value(info.address) or CONSUMER_PROMPTS["consumer_address"],
            "city": _clean_value(info.city),
            "state": _clean_value(info.state),
            "zip_code": _clean_value(info.zip_code),
            "city_state_zip": _clean_value(locality) or CONSUMER_PROMPTS["city_state_zip"],
            "date": format_letter_date(self._today()),
            "bureau_name": get_bureau_name(bureau),
            "bureau_address": get_bureau_address(bureau),
            "report_number": _clean_value(report.report_number),
            "account_name": _clean_value(lead.account.account_name) if lead and lead.account else "",
            "account_number": _clean_value(lead.account.account_number) if lead and lead.account else "",
            "account_details": self._account_details(report, lead),
            "dispute_reason": _clean_value("; ".join(i.title for i in issues))
            or "Request for investigation of my credit file",
            "error_type": (lead.type.value if lead else GENERAL_TYPE).replace("_", " "),
            "error_description": "\n\n".join(_clean_value(i.description) for i in issues),
            "fcra_sections": self.legal_resolver.render_section_list(citations),
            "legal_citations": self.legal_resolver.render_citations(citations),
            "disputed_items": self._item_list(issues) or self._account_list(report),
        }
        for issue_type, key in LIST_BLOCK_KEYS.items():
            context[key] = self._item_list([i for i in issues if i.type.value == issue_type])
        return context

    # =========================================================================
    # RENDERING
    # =========================================================================

    def _render(self, context: Dict[str, str], error_type: str) -> Tuple[str, Resolution, Optional[str]]:
        result = self.resolver.resolve(error_type)
        if result.template is not None:
            content = self.substitute(result.template.body_text, context)
            if content.strip():
                return content, result.resolution, result.template.name
            logger.warning(f"Template '{result.template.name}' rendered empty; using structural letter")

        return self._tidy(render_structural_letter(context)), Resolution.STRUCTURAL, None

    def substitute(self, body_text: str, context: Dict[str, str]) -> str:
        """Replace every token in one pass. Unrecognized tokens become ''."""

        def replace(match: "re.Match") -> str:
            raw = next(group for group in match.groups() if group is not None)
            key = TOKEN_ALIASES.get(normalize_token(raw))
            if key is not None:
                return context.get(key, "")
            logger.debug(f"Dropping unknown token {match.group(0)!r}")
            return ""

        return self._tidy(TOKEN_RE.sub(replace, body_text or ""))

    @staticmethod
    def _tidy(text: str) -> str:
        text = re.sub(r"[ \t]+\n", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text.strip()

    # =========================================================================
    # CONTEXT HELPERS
    # =========================================================================

    @staticmethod
    def _item_list(issues: Sequence[Issue]) -> str:
        lines = []
        for issue in issues:
            if issue.related_accounts:
                refs = ", ".join(
                    f"{r.account_name} (Account #{r.account_number})" if r.account_number else r.account_name
                    for r in issue.related_accounts
                )
                lines.append(f"- {refs}: {issue.description}")
            elif issue.account:
                label = issue.account.account_name
                if issue.account.account_number:
                    label = f"{label} (Account #{issue.account.account_number})"
                lines.append(f"- {label}: {issue.description}")
            else:
                lines.append(f"- {issue.title}: {issue.description}")
        return _clean_lines(lines)

    @staticmethod
    def _account_list(report: ReportModel) -> str:
        accounts = [a for a in report.accounts if a.is_negative] or report.accounts
        lines = [
            f"- {a.account_name} (Account #{a.account_number})" if a.account_number else f"- {a.account_name}"
            for a in accounts[:MAX_SELECTED_ISSUES]
        ]
        return _clean_lines(lines)

    @staticmethod
    def _account_details(report: ReportModel, lead: Optional[Issue]) -> str:
        if lead is None or lead.account is None:
            return ""
        account = _find_account(report.accounts, lead.account.account_name, lead.account.account_number)
        details = [f"Account Name: {lead.account.account_name}"]
        if lead.account.account_number:
            details.append(f"Account Number: {lead.account.account_number}")
        if account is not None:
            if account.account_type:
                details.append(f"Account Type: {account.account_type}")
            if account.balance is not None:
                details.append(f"Balance: ${account.balance:,.2f}")
            if account.payment_status:
                details.append(f"Status: {account.payment_status}")
            if account.date_opened:
                details.append(f"Date Opened: {account.date_opened}")
        return _clean_lines(details)

    def _today(self) -> date:
        return self.as_of or date.today()

    @staticmethod
    def _title(issues: Sequence[Issue], account_name: Optional[str], bureau_name: str) -> str:
        if not issues:
            return f"General Dispute Letter ({bureau_name})"
        if len(issues) == 1:
            title = issues[0].title
            if account_name and account_name not in title:
                title = f"{title} ({account_name})"
            return title
        label = issues[0].type.value.replace("_", " ").title()
        return f"{label} Disputes ({len(issues)} items, {bureau_name})"


def _clean_lines(lines: List[str]) -> str:
    return "\n".join(_clean_value(line) for line in lines)


def _find_account(accounts: Sequence[Account], name: str, number: Optional[str]) -> Optional[Account]:
    for account in accounts:
        if account.account_name == name and account.account_number == number:
            return account
    return None


# =============================================================================
# GENERATION
# =============================================================================

def generate_letters(
    report: ReportModel,
    issues: Optional[Sequence[Issue]] = None,
    composer: Optional[LetterComposer] = None,
) -> List[Letter]:
    """
    One letter per (bureau, issue type) group of the selected issues.

    Issues without a bureau go to the report's primary bureau. With no
    issues, one general letter goes to the primary bureau, else to each
    present bureau, else to a generic credit bureau recipient.
    Always returns at least one letter.
    """
    composer = composer or LetterComposer()
    issues = list(report.issues if issues is None else issues)
    selected = select_dispute_issues(issues)

    letters: List[Letter] = []
    if selected:
        groups: "OrderedDict[Tuple[Optional[Bureau], IssueType], List[Issue]]" = OrderedDict()
        for issue in selected:
            key = (issue.bureau or report.primary_bureau, issue.type)
            groups.setdefault(key, []).append(issue)
        for (bureau, _), group in groups.items():
            letters.append(composer.compose(report, group, bureau))
    else:
        if report.primary_bureau is not None:
            targets: List[Optional[Bureau]] = [report.primary_bureau]
        else:
            targets = list(report.bureaus_present.present()) or [None]
        for bureau in targets:
            letters.append(composer.compose(report, [], bureau))

    logger.info(f"Generated {len(letters)} letters from {len(issues)} issues")
    return letters
