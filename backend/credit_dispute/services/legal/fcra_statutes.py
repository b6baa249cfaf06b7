"""
FCRA / FDCPA Statute Mapping - Single Source of Truth (SSOT)
Mapping of Act section numbers to U.S. Code citations.

All statute references in letters should go through resolve_statute() so the
U.S. Code form is consistent.
"""
import re

# FCRA Section -> USC
# Section 611(a) -> 15 U.S.C. § 1681i(a)   (i = reinvestigation)
# Section 623(b) -> 15 U.S.C. § 1681s-2(b) (s-2 = furnisher duties)
# Section 605(a) -> 15 U.S.C. § 1681c(a)   (c = obsolescence)
# Section 607(b) -> 15 U.S.C. § 1681e(b)   (e = accuracy procedures)

FCRA_STATUTE_MAP = {
    "604": {
        "usc": "15 U.S.C. § 1681b",
        "title": "Permissible purposes of consumer reports",
    },
    "604(a)(3)(A)": {
        "usc": "15 U.S.C. § 1681b(a)(3)(A)",
        "title": "Permissible purpose - credit transaction",
        "description": "A report may be furnished only for a credit transaction the consumer initiated",
    },
    "605": {
        "usc": "15 U.S.C. § 1681c",
        "title": "Requirements relating to information contained in consumer reports",
    },
    "605(a)": {
        "usc": "15 U.S.C. § 1681c(a)",
        "title": "Obsolete information",
        "description": "Adverse items may not be reported beyond the statutory reporting period",
    },
    "605(a)(1)": {
        "usc": "15 U.S.C. § 1681c(a)(1)",
        "title": "Obsolete bankruptcies",
        "description": "Bankruptcy cases may not be reported after the reporting period has run",
    },
    "605(a)(4)": {
        "usc": "15 U.S.C. § 1681c(a)(4)",
        "title": "Obsolete accounts placed for collection or charged off",
        "description": "Collection and charged-off accounts are limited to seven years",
    },
    "607": {
        "usc": "15 U.S.C. § 1681e",
        "title": "Compliance procedures",
    },
    "607(b)": {
        "usc": "15 U.S.C. § 1681e(b)",
        "title": "Accuracy of report",
        "description": "Reasonable procedures to assure maximum possible accuracy",
    },
    "609": {
        "usc": "15 U.S.C. § 1681g",
        "title": "Disclosures to consumers",
    },
    "609(a)(1)": {
        "usc": "15 U.S.C. § 1681g(a)(1)",
        "title": "Disclosure of all information in the file",
        "description": "The consumer is entitled to all information in the file at the time of request",
    },
    "611": {
        "usc": "15 U.S.C. § 1681i",
        "title": "Procedure in case of disputed accuracy",
    },
    "611(a)": {
        "usc": "15 U.S.C. § 1681i(a)",
        "title": "Reinvestigation of disputed information",
        "description": "Requires CRAs to reinvestigate disputed information within 30 days",
    },
    "611(a)(1)(A)": {
        "usc": "15 U.S.C. § 1681i(a)(1)(A)",
        "title": "Reinvestigation requirement",
        "description": "Free reasonable reinvestigation within 30 days of notice",
    },
    "611(a)(5)(A)": {
        "usc": "15 U.S.C. § 1681i(a)(5)(A)",
        "title": "Treatment of inaccurate or unverifiable information",
        "description": "Promptly delete or modify information found inaccurate or unverifiable",
    },
    "623": {
        "usc": "15 U.S.C. § 1681s-2",
        "title": "Responsibilities of furnishers of information",
    },
    "623(a)(1)(A)": {
        "usc": "15 U.S.C. § 1681s-2(a)(1)(A)",
        "title": "Duty to provide accurate information",
        "description": "Furnishers may not report information they know or should know is inaccurate",
    },
    "623(b)(1)(A)": {
        "usc": "15 U.S.C. § 1681s-2(b)(1)(A)",
        "title": "Furnisher investigation after notice of dispute",
        "description": "Furnishers must investigate disputed information referred by a CRA",
    },
    "616": {
        "usc": "15 U.S.C. § 1681n",
        "title": "Civil liability for willful noncompliance",
    },
    "617": {
        "usc": "15 U.S.C. § 1681o",
        "title": "Civil liability for negligent noncompliance",
    },
}

# FDCPA Section -> USC (15 U.S.C. § 1692 + suffix)
FDCPA_STATUTE_MAP = {
    "807": {
        "usc": "15 U.S.C. § 1692e",
        "title": "False or misleading representations",
    },
    "807(2)(A)": {
        "usc": "15 U.S.C. § 1692e(2)(A)",
        "title": "False representation of the character, amount, or legal status of a debt",
    },
    "809": {
        "usc": "15 U.S.C. § 1692g",
        "title": "Validation of debts",
    },
    "809(a)(1)": {
        "usc": "15 U.S.C. § 1692g(a)(1)",
        "title": "Notice of the amount of the debt",
    },
}

_STATUTE_MAPS = {"FCRA": FCRA_STATUTE_MAP, "FDCPA": FDCPA_STATUTE_MAP}


def resolve_statute(section: str, law: str = "FCRA") -> str:
    """
    Convert an Act section identifier to its U.S. Code citation.

    Examples:
        >>> resolve_statute("611(a)")
        '15 U.S.C. § 1681i(a)'
        >>> resolve_statute("623(b)(1)(A)")
        '15 U.S.C. § 1681s-2(b)(1)(A)'
        >>> resolve_statute("809(a)(1)", law="FDCPA")
        '15 U.S.C. § 1692g(a)(1)'
    """
    statute_map = _STATUTE_MAPS.get(law.upper(), FCRA_STATUTE_MAP)
    section_clean = section.strip().replace(" ", "")
    section_clean = re.sub(r"^(?:Section|§)", "", section_clean, flags=re.IGNORECASE)

    if section_clean in statute_map:
        return statute_map[section_clean]["usc"]

    # Walk up to the nearest known parent: "611(a)(2)" -> "611(a)" -> "611"
    parent = section_clean
    while "(" in parent:
        parent = parent.rsplit("(", 1)[0]
        if parent in statute_map:
            return f"{statute_map[parent]['usc']}{section_clean[len(parent):]}"

    return f"{law.upper()} Section {section_clean}"


def get_statute_details(section: str, law: str = "FCRA") -> dict:
    """Dictionary with 'usc', 'title', and optionally 'description'."""
    statute_map = _STATUTE_MAPS.get(law.upper(), FCRA_STATUTE_MAP)
    section_clean = section.strip().replace(" ", "")
    if section_clean in statute_map:
        return statute_map[section_clean]
    return {
        "usc": resolve_statute(section_clean, law),
        "title": f"{law.upper()} Section {section_clean}",
    }


def format_legal_citation(section: str, law: str = "FCRA", include_title: bool = False) -> str:
    """
    Format a citation for an Act section.

    Examples:
        >>> format_legal_citation("611(a)")
        '15 U.S.C. § 1681i(a)'
        >>> format_legal_citation("611(a)", include_title=True)
        '15 U.S.C. § 1681i(a) (Reinvestigation of disputed information)'
    """
    usc = resolve_statute(section, law)
    if include_title:
        title = get_statute_details(section, law).get("title", "")
        if title:
            return f"{usc} ({title})"
    return usc
