"""Credit Dispute Engine - Legal References

Statute mapping and issue-type -> citation lookup.
"""
from .fcra_statutes import (
    FCRA_STATUTE_MAP,
    FDCPA_STATUTE_MAP,
    resolve_statute,
    get_statute_details,
    format_legal_citation,
)
from .citations import (
    CITATION_LIBRARY,
    ISSUE_CITATIONS,
    LegalReferenceResolver,
    get_citations,
)

__all__ = [
    "FCRA_STATUTE_MAP", "FDCPA_STATUTE_MAP",
    "resolve_statute", "get_statute_details", "format_legal_citation",
    "CITATION_LIBRARY", "ISSUE_CITATIONS", "LegalReferenceResolver", "get_citations",
]
