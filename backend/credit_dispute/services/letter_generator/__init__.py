"""
Credit Dispute Engine - Dispute Letter Generator

Resolves a template for each issue group and composes the final letter,
falling back to a structural skeleton and finally a minimal letter so
that a letter is always produced.

Usage:
    from credit_dispute.services.letter_generator import generate_letters

    letters = generate_letters(report)
    print(letters[0].content)
"""

from .composer import (
    LetterComposer,
    generate_letters,
    select_dispute_issues,
    format_letter_date,
)

from .resolver import (
    LetterTemplateResolver,
    TemplateResolution,
)

from .template_source import (
    TemplateSource,
    StaticTemplateSource,
    RemoteTemplateSource,
    DatabaseTemplateSource,
    TemplateCache,
    build_template,
    default_sources,
    get_template_cache,
)

from .templates import (
    TOKEN_ALIASES,
    normalize_issue_type,
    infer_template_type,
    find_tokens,
    render_structural_letter,
)

from .bureau_profiles import (
    BUREAU_PROFILES,
    get_bureau_profile,
    get_bureau_address,
    get_bureau_name,
)

__all__ = [
    "LetterComposer",
    "generate_letters",
    "select_dispute_issues",
    "format_letter_date",
    "LetterTemplateResolver",
    "TemplateResolution",
    "TemplateSource",
    "StaticTemplateSource",
    "RemoteTemplateSource",
    "DatabaseTemplateSource",
    "TemplateCache",
    "build_template",
    "default_sources",
    "get_template_cache",
    "TOKEN_ALIASES",
    "normalize_issue_type",
    "infer_template_type",
    "find_tokens",
    "render_structural_letter",
    "BUREAU_PROFILES",
    "get_bureau_profile",
    "get_bureau_address",
    "get_bureau_name",
]
