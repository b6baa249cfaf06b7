"""
Letter Template Resolver Tests

Verifies:
1. Resolution states: exact -> partial -> generic -> structural
2. Template types are inferred from names when not declared
3. A failing source degrades to the remaining corpus and is retried after a cooldown
4. The cache loads lazily, is shared by default resolvers and can be reset
"""

import pytest
from unittest.mock import MagicMock

import requests

from credit_dispute.models.ssot import Bureau, Issue, IssueType, ReportModel, Resolution, Severity
from credit_dispute.services import pipeline
from credit_dispute.services.errors import TemplateFetchError
from credit_dispute.services.letter_generator import (
    LetterComposer,
    LetterTemplateResolver,
    RemoteTemplateSource,
    StaticTemplateSource,
    TemplateCache,
    build_template,
    find_tokens,
    generate_letters,
    get_template_cache,
    infer_template_type,
    normalize_issue_type,
    template_source,
)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def corpus():
    return [
        build_template("Collection Validation", "Dear {BUREAU}, validate {ACCOUNT_NAME}.", "collection"),
        build_template("Late Payment Goodwill", "Please remove the late mark on [ACCOUNT_NAME].", "late"),
        build_template("General Dispute", "To {BUREAU_NAME}: I dispute {DISPUTED_ITEMS}.", "general"),
    ]


@pytest.fixture
def resolver(corpus):
    return LetterTemplateResolver(TemplateCache([StaticTemplateSource(corpus)]))


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


# =============================================================================
# RESOLUTION STATES
# =============================================================================

class TestResolutionStates:
    """First matching state wins."""

    def test_exact(self, resolver):
        result = resolver.resolve(IssueType.COLLECTION)

        assert result.resolution == Resolution.EXACT
        assert result.template.name == "Collection Validation"

    def test_partial(self, resolver):
        result = resolver.resolve(IssueType.LATE_PAYMENT)

        assert result.resolution == Resolution.PARTIAL
        assert result.template.name == "Late Payment Goodwill"

    def test_generic(self, resolver):
        result = resolver.resolve(IssueType.INQUIRY)

        assert result.resolution == Resolution.GENERIC
        assert result.template.name == "General Dispute"

    def test_general_request_skips_type_match(self, resolver):
        assert resolver.resolve("general").resolution == Resolution.GENERIC
        assert resolver.resolve(None).resolution == Resolution.GENERIC

    def test_structural_on_empty_corpus(self):
        resolver = LetterTemplateResolver(TemplateCache([StaticTemplateSource([])]))
        result = resolver.resolve(IssueType.COLLECTION)

        assert result.resolution == Resolution.STRUCTURAL
        assert result.template is None

    def test_blank_templates_ignored(self):
        cache = TemplateCache([StaticTemplateSource([build_template("Collection", "   ", "collection")])])
        assert LetterTemplateResolver(cache).resolve(IssueType.COLLECTION).resolution == Resolution.STRUCTURAL


class TestTemplateTypes:
    """Type normalization and token discovery."""

    @pytest.mark.parametrize("name,expected", [
        ("Duplicate Student Loan Dispute", "duplicate_account"),
        ("Charge-Off Removal", "charge_off"),
        ("Collection Account Validation", "collection"),
        ("Late Payment Goodwill", "late_payment"),
        ("Hard Inquiry Removal", "inquiry"),
        ("Round 1 Dispute", "general"),
    ])
    def test_infer_from_name(self, name, expected):
        assert infer_template_type(name) == expected

    def test_declared_type_wins(self):
        template = build_template("Anything", "body", "Collection")
        assert template.type == "collection"

    def test_normalize_empty(self):
        assert normalize_issue_type("") == "general"
        assert normalize_issue_type(None) == "general"

    def test_find_tokens(self):
        body = "{{YOUR NAME}} {Account Name} [ACCOUNT_NUMBER] [BUREAU ADDRESS] {ACCOUNT_NAME}"
        assert find_tokens(body) == ["YOUR_NAME", "ACCOUNT_NAME", "ACCOUNT_NUMBER", "BUREAU_ADDRESS"]

    def test_placeholder_tokens_recorded(self, corpus):
        assert corpus[0].placeholder_tokens == ("BUREAU", "ACCOUNT_NAME")


# =============================================================================
# SOURCES AND CACHE
# =============================================================================

class TestRemoteSource:
    """HTTP template repository."""

    def test_load_listing(self):
        session = MagicMock()
        session.get.return_value = _response([
            {"name": "Collection Letter", "type": "collection", "body_text": "Validate {ACCOUNT_NAME}."},
        ])
        source = RemoteTemplateSource("http://templates.example/", session=session)
        templates = source.load()

        assert [t.name for t in templates] == ["Collection Letter"]
        session.get.assert_called_once_with("http://templates.example/templates", timeout=5.0)

    def test_entries_without_body_fetched_by_name(self):
        session = MagicMock()
        session.get.side_effect = [
            _response([{"name": "Late Payment"}]),
            _response({"name": "Late Payment", "body_text": "Remove the late mark."}),
        ]
        templates = RemoteTemplateSource("http://templates.example", session=session).load()

        assert templates[0].body_text == "Remove the late mark."
        assert templates[0].type == "late_payment"
        assert session.get.call_args_list[1][0][0] == "http://templates.example/templates/Late%20Payment"

    def test_timeout_raises_fetch_error(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")

        with pytest.raises(TemplateFetchError):
            RemoteTemplateSource("http://templates.example", session=session).load()

    def test_invalid_json_raises_fetch_error(self):
        session = MagicMock()
        response = _response(None)
        response.json.side_effect = ValueError("not json")
        session.get.return_value = response

        with pytest.raises(TemplateFetchError):
            RemoteTemplateSource("http://templates.example", session=session).load()


class TestTemplateCache:
    """Lazy loading, failure handling and reset."""

    def test_fetch_failure_falls_through_to_structural(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")
        cache = TemplateCache([RemoteTemplateSource("http://templates.example", session=session)])
        resolver = LetterTemplateResolver(cache)

        result = resolver.resolve(IssueType.COLLECTION)

        assert result.resolution == Resolution.STRUCTURAL
        assert cache.is_loaded is False

    def test_failed_source_retried_after_cooldown(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")
        clock = MagicMock(return_value=100.0)
        cache = TemplateCache(
            [RemoteTemplateSource("http://templates.example", session=session)], retry_after=30, clock=clock,
        )
        resolver = LetterTemplateResolver(cache)
        assert resolver.resolve(IssueType.COLLECTION).resolution == Resolution.STRUCTURAL

        session.get.side_effect = None
        session.get.return_value = _response([
            {"name": "Collection Letter", "type": "collection", "body_text": "Validate {ACCOUNT_NAME}."},
        ])

        clock.return_value = 110.0
        assert resolver.resolve(IssueType.COLLECTION).resolution == Resolution.STRUCTURAL
        assert session.get.call_count == 1

        clock.return_value = 131.0
        assert resolver.resolve(IssueType.COLLECTION).resolution == Resolution.EXACT
        assert cache.is_loaded is True
        assert session.get.call_count == 2

    def test_unreachable_source_fetched_once_per_generation(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")
        cache = TemplateCache([RemoteTemplateSource("http://templates.example", session=session)])
        composer = LetterComposer(resolver=LetterTemplateResolver(cache))
        issues = [
            Issue(type=issue_type, title="t", description="d", severity=Severity.HIGH, bureau=Bureau.EXPERIAN)
            for issue_type in (IssueType.COLLECTION, IssueType.LATE_PAYMENT, IssueType.INQUIRY)
        ]

        letters = generate_letters(ReportModel(), issues=issues, composer=composer)

        assert len(letters) == 3
        assert all(letter.resolution == Resolution.STRUCTURAL for letter in letters)
        assert session.get.call_count == 1

    def test_reset_clears_failures(self):
        session = MagicMock()
        session.get.side_effect = requests.Timeout("timed out")
        cache = TemplateCache([RemoteTemplateSource("http://templates.example", session=session)])

        cache.get_templates()
        cache.get_templates()
        assert session.get.call_count == 1

        cache.reset()
        cache.get_templates()
        assert session.get.call_count == 2

    def test_failing_source_keeps_others(self, corpus):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        cache = TemplateCache([
            RemoteTemplateSource("http://templates.example", session=session),
            StaticTemplateSource(corpus),
        ])

        assert len(cache.get_templates()) == 3
        assert LetterTemplateResolver(cache).resolve(IssueType.COLLECTION).resolution == Resolution.EXACT

    def test_loaded_once(self, corpus):
        source = StaticTemplateSource(corpus)
        source.load = MagicMock(wraps=source.load)
        cache = TemplateCache([source])

        cache.get_templates()
        cache.get_templates()
        assert source.load.call_count == 1

        cache.reset()
        assert cache.is_loaded is False
        cache.get_templates()
        assert source.load.call_count == 2

    def test_find_by_name(self, corpus):
        cache = TemplateCache([StaticTemplateSource(corpus)])

        assert cache.find("general dispute").name == "General Dispute"
        assert cache.find("Missing") is None


class TestSharedCache:
    """Default resolvers share the process-wide cache."""

    @pytest.fixture
    def counting_source(self, monkeypatch, corpus):
        source = StaticTemplateSource(corpus)
        source.load = MagicMock(wraps=source.load)
        monkeypatch.setattr(template_source, "default_sources", lambda: [source])
        get_template_cache.cache_clear()
        yield source
        get_template_cache.cache_clear()

    def test_default_resolvers_share_one_cache(self, counting_source):
        assert LetterTemplateResolver().cache is LetterTemplateResolver().cache
        assert LetterTemplateResolver().cache is get_template_cache()

    def test_corpus_loaded_once_across_generations(self, counting_source):
        pipeline.generate_letters(ReportModel())
        pipeline.generate_letters(ReportModel())

        assert counting_source.load.call_count == 1

    def test_reset_reloads_shared_cache(self, counting_source):
        LetterTemplateResolver().resolve(IssueType.COLLECTION)
        get_template_cache().reset()
        LetterTemplateResolver().resolve(IssueType.COLLECTION)

        assert counting_source.load.call_count == 2


class TestDatabaseSource:
    """letter_templates table."""

    def test_active_rows_loaded(self):
        from sqlalchemy import create_engine
        from sqlalchemy.orm import sessionmaker
        from sqlalchemy.pool import StaticPool

        from credit_dispute.database import Base
        from credit_dispute.models.db_models import LetterTemplateDB
        from credit_dispute.services.letter_generator import DatabaseTemplateSource

        engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
        Base.metadata.create_all(bind=engine)
        Session = sessionmaker(bind=engine)

        db = Session()
        db.add(LetterTemplateDB(name="Collection Validation", body_text="Validate {ACCOUNT_NAME}."))
        db.add(LetterTemplateDB(name="Old Inquiry", template_type="inquiry", body_text="x", is_active=False))
        db.commit()
        db.close()

        templates = DatabaseTemplateSource(session_factory=Session).load()

        assert [t.name for t in templates] == ["Collection Validation"]
        assert templates[0].type == "collection"

    def test_missing_table_raises_fetch_error(self):
        from sqlalchemy import create_engine
        from sqlalchemy.orm import sessionmaker

        from credit_dispute.services.letter_generator import DatabaseTemplateSource

        engine = create_engine("sqlite://")
        source = DatabaseTemplateSource(session_factory=sessionmaker(bind=engine))

        with pytest.raises(TemplateFetchError):
            source.load()
