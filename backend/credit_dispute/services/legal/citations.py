"""
Credit Dispute Engine - Legal Reference Resolver

Static lookup from issue type to statutory citations, plus the wildcard
citations attached to every issue (accuracy and reinvestigation duties).
Citation choice is heuristic and has not been legally reviewed.
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from ...models.ssot import Issue, IssueType, LegalCitation
from .fcra_statutes import format_legal_citation

logger = logging.getLogger(__name__)


# =============================================================================
# CITATION TABLE
# =============================================================================

# key -> (law, section, duty prose)
CITATION_LIBRARY: Dict[str, Tuple[str, str, str]] = {
    "reinvestigation": (
        "FCRA", "611(a)(1)(A)",
        "you must conduct a reasonable reinvestigation of disputed information, free of charge, "
        "within 30 days of receiving notice of the dispute",
    ),
    "accuracy": (
        "FCRA", "607(b)",
        "you must follow reasonable procedures to assure maximum possible accuracy of the "
        "information in my file",
    ),
    "delete_unverifiable": (
        "FCRA", "611(a)(5)(A)",
        "information that is inaccurate, incomplete or cannot be verified must be promptly deleted "
        "or modified",
    ),
    "furnisher_accuracy": (
        "FCRA", "623(a)(1)(A)",
        "a furnisher may not report information it knows or has reasonable cause to believe is inaccurate",
    ),
    "furnisher_investigation": (
        "FCRA", "623(b)(1)(A)",
        "the furnisher must investigate the disputed information once you notify it of my dispute",
    ),
    "obsolete_info": (
        "FCRA", "605(a)",
        "adverse information may not be reported beyond the periods the statute allows",
    ),
    "obsolete_bankruptcy": (
        "FCRA", "605(a)(1)",
        "bankruptcy cases may not be reported once the statutory reporting period has passed",
    ),
    "permissible_purpose": (
        "FCRA", "604(a)(3)(A)",
        "a consumer report may only be furnished for a permissible purpose, such as a credit "
        "transaction I initiated",
    ),
    "file_disclosure": (
        "FCRA", "609(a)(1)",
        "I am entitled to an accurate disclosure of all information in my file, including my "
        "identifying information",
    ),
    "debt_validation": (
        "FDCPA", "809(a)(1)",
        "a debt collector must validate the amount of the debt when it is disputed",
    ),
    "false_representation": (
        "FDCPA", "807(2)(A)",
        "a debt collector may not misrepresent the character, amount or legal status of a debt",
    ),
}

WILDCARD = "all"

# issue type -> citation keys (many-to-one; "all" is appended to every issue)
ISSUE_CITATIONS: Dict[str, List[str]] = {
    WILDCARD: ["reinvestigation", "accuracy"],
    IssueType.LATE_PAYMENT.value: ["furnisher_accuracy", "furnisher_investigation", "obsolete_info"],
    IssueType.COLLECTION.value: ["debt_validation", "false_representation", "obsolete_info", "furnisher_investigation"],
    IssueType.CHARGE_OFF.value: ["furnisher_accuracy", "obsolete_info"],
    IssueType.INQUIRY.value: ["permissible_purpose"],
    IssueType.BANKRUPTCY.value: ["obsolete_bankruptcy", "delete_unverifiable"],
    IssueType.PERSONAL_INFO.value: ["file_disclosure"],
    IssueType.DUPLICATE_ACCOUNT.value: ["delete_unverifiable", "furnisher_accuracy"],
    IssueType.MISSING_DATES.value: ["furnisher_accuracy", "delete_unverifiable"],
    IssueType.ACCOUNT_REVIEW.value: ["furnisher_investigation"],
}


def _build_citation(key: str) -> LegalCitation:
    law, section, _ = CITATION_LIBRARY[key]
    return LegalCitation(law=law, section=section, citation_text=format_legal_citation(section, law))


_PROSE_BY_SECTION: Dict[Tuple[str, str], str] = {
    (law, section): prose for law, section, prose in CITATION_LIBRARY.values()
}


# =============================================================================
# RESOLVER
# =============================================================================

class LegalReferenceResolver:
    """Maps issue types to citations and renders citation prose for letters."""

    def __init__(self, table: Optional[Dict[str, List[str]]] = None):
        self.table = table or ISSUE_CITATIONS

    def resolve(self, issue_type: Union[IssueType, str]) -> List[LegalCitation]:
        """Type-specific citations first, then the wildcard ones; no duplicates."""
        type_key = issue_type.value if isinstance(issue_type, IssueType) else str(issue_type or "").lower()
        if type_key not in self.table:
            logger.debug(f"No citations for issue type {type_key!r}; wildcard only")

        keys = list(self.table.get(type_key, [])) + list(self.table.get(WILDCARD, []))
        return [_build_citation(key) for key in dict.fromkeys(keys)]

    def attach(self, issue: Issue) -> Issue:
        return issue.with_citations(self.resolve(issue.type))

    def render_citations(self, citations: Iterable[LegalCitation]) -> str:
        """One prose paragraph per distinct citation."""
        paragraphs = []
        seen = set()
        for citation in citations:
            key = (citation.law, citation.section)
            if key in seen:
                continue
            seen.add(key)
            prose = _PROSE_BY_SECTION.get(key)
            paragraph = f"Under {citation.law} Section {citation.section} ({citation.citation_text})"
            paragraphs.append(f"{paragraph}, {prose}." if prose else f"{paragraph}.")
        return "\n\n".join(paragraphs)

    def render_section_list(self, citations: Iterable[LegalCitation]) -> str:
        """Short comma-separated form: 'FCRA Section 611(a)(1)(A), FCRA Section 607(b)'."""
        labels = [f"{c.law} Section {c.section}" for c in citations]
        return ", ".join(dict.fromkeys(labels))


def get_citations(issue_type: Union[IssueType, str]) -> List[LegalCitation]:
    """Convenience function to resolve citations for an issue type."""
    return LegalReferenceResolver().resolve(issue_type)
