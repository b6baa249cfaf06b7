"""
Credit Dispute Engine - Template Vocabulary and Structural Skeleton

Contains:
- The placeholder token vocabulary (aliases -> canonical context keys)
- Issue/template type normalization
- The structural letter skeleton used when no corpus template applies

Token forms recognized in template bodies: {TOKEN}, {{TOKEN}} and
[TOKEN] / [TOKEN WORDS] (upper case; spaces are read as underscores).
"""
import re
from typing import Dict, List, Optional


# =============================================================================
# TOKEN VOCABULARY
# =============================================================================

# alias (upper case, underscores) -> canonical context key
TOKEN_ALIASES: Dict[str, str] = {
    # Consumer
    "FULL_NAME": "consumer_name",
    "YOUR_NAME": "consumer_name",
    "NAME": "consumer_name",
    "CONSUMER_NAME": "consumer_name",
    "CLIENT_NAME": "consumer_name",
    "ADDRESS": "consumer_address",
    "YOUR_ADDRESS": "consumer_address",
    "STREET_ADDRESS": "consumer_address",
    "CITY": "city",
    "STATE": "state",
    "ZIP": "zip_code",
    "ZIP_CODE": "zip_code",
    "ZIPCODE": "zip_code",
    "CITY_STATE_ZIP": "city_state_zip",
    # Dates
    "DATE": "date",
    "CURRENT_DATE": "date",
    "TODAY": "date",
    # Bureau
    "BUREAU": "bureau_name",
    "BUREAU_NAME": "bureau_name",
    "CREDIT_BUREAU": "bureau_name",
    "BUREAU_ADDRESS": "bureau_address",
    "CREDIT_BUREAU_ADDRESS": "bureau_address",
    # Report / account
    "REPORT_NUMBER": "report_number",
    "CREDIT_REPORT_NUMBER": "report_number",
    "ACCOUNT_NAME": "account_name",
    "CREDITOR": "account_name",
    "CREDITOR_NAME": "account_name",
    "ACCOUNT_NUMBER": "account_number",
    "ACCOUNT_DETAILS": "account_details",
    # Dispute
    "DISPUTE_REASON": "dispute_reason",
    "REASON": "dispute_reason",
    "ERROR_TYPE": "error_type",
    "ERROR_DESCRIPTION": "error_description",
    "EXPLANATION": "error_description",
    "DESCRIPTION": "error_description",
    "FCRA_SECTIONS": "fcra_sections",
    "LEGAL_CITATIONS": "legal_citations",
    "LEGAL_BASIS": "legal_citations",
    # Per-type list blocks
    "DISPUTED_ITEMS": "disputed_items",
    "DISPUTED_ACCOUNTS": "disputed_items",
    "ACCOUNT_LIST": "disputed_items",
    "LATE_PAYMENT_ACCOUNTS": "late_payment_items",
    "LATE_PAYMENTS": "late_payment_items",
    "COLLECTION_ACCOUNTS": "collection_items",
    "COLLECTIONS": "collection_items",
    "CHARGE_OFF_ACCOUNTS": "charge_off_items",
    "INQUIRY_LIST": "inquiry_items",
    "INQUIRIES": "inquiry_items",
    "DUPLICATE_ACCOUNTS": "duplicate_items",
    "PERSONAL_INFO_ERRORS": "personal_info_items",
    "BANKRUPTCY_RECORDS": "bankruptcy_items",
}

# Issue type -> list-block context key
LIST_BLOCK_KEYS: Dict[str, str] = {
    "late_payment": "late_payment_items",
    "collection": "collection_items",
    "charge_off": "charge_off_items",
    "inquiry": "inquiry_items",
    "duplicate_account": "duplicate_items",
    "personal_info": "personal_info_items",
    "bankruptcy": "bankruptcy_items",
}

# Fill-in prompts for consumer fields the report did not provide
CONSUMER_PROMPTS: Dict[str, str] = {
    "consumer_name": "[YOUR NAME]",
    "consumer_address": "[YOUR ADDRESS]",
    "city_state_zip": "[YOUR CITY, STATE ZIP]",
}

# {TOKEN}, {{TOKEN}} (any content) and upper-case [TOKEN] / [TWO WORDS]
TOKEN_RE = re.compile(
    r"\{\{([^{}]*)\}\}"
    r"|\{([^{}]*)\}"
    r"|\[([A-Z][A-Z0-9_]*(?: [A-Z0-9_]+)*)\]"
)


def normalize_token(raw: str) -> str:
    """'account name' -> 'ACCOUNT_NAME'."""
    return re.sub(r"[\s\-]+", "_", raw.strip()).upper()


def find_tokens(body_text: str) -> List[str]:
    """Distinct normalized tokens in a template body, in order of appearance."""
    tokens = []
    for match in TOKEN_RE.finditer(body_text or ""):
        raw = next(group for group in match.groups() if group is not None)
        token = normalize_token(raw)
        if token and token not in tokens:
            tokens.append(token)
    return tokens


# =============================================================================
# TYPE NORMALIZATION
# =============================================================================

GENERAL_TYPE = "general"

# (keywords, canonical type) - first rule with a keyword in the text wins
TYPE_RULES = [
    (["duplicate"], "duplicate_account"),
    (["student", "loan"], "student_loan"),
    (["charge"], "charge_off"),
    (["collect"], "collection"),
    (["late", "payment"], "late_payment"),
    (["bankrupt"], "bankruptcy"),
    (["inquir"], "inquiry"),
    (["missing", "date"], "missing_dates"),
    (["personal", "name", "address", "ssn", "identity"], "personal_info"),
    (["inaccura", "wrong", "error"], "inaccuracy"),
]


def normalize_issue_type(value: Optional[str]) -> str:
    """Map a free-text issue or template type to a canonical type key."""
    text = (value or "").lower()
    if not text.strip():
        return GENERAL_TYPE
    for keywords, canonical in TYPE_RULES:
        if any(keyword in text for keyword in keywords):
            return canonical
    return GENERAL_TYPE


def infer_template_type(name: Optional[str]) -> str:
    """Type for a corpus template that did not declare one, from its name."""
    cleaned = re.sub(r"[^a-z0-9]+", "_", (name or "").lower()).strip("_")
    return normalize_issue_type(cleaned)


# =============================================================================
# STRUCTURAL SKELETON
# =============================================================================

SUBJECT_LINE = "Re: Request for investigation of inaccurate information in my credit file"

OPENING = (
    "I am writing to dispute the following information in my credit file. "
    "The items listed below are inaccurate or incomplete, and I am requesting "
    "that they be investigated and corrected or deleted."
)

INVESTIGATION_PARAGRAPH = (
    "Under the Fair Credit Reporting Act, you are required to conduct a reasonable "
    "investigation of the disputed items and to record the current status of the "
    "disputed information, or delete it, within 30 days of receiving this letter. "
    "Please provide me with a description of the procedure used to determine the "
    "accuracy of the information and an updated copy of my credit report when the "
    "investigation is complete."
)

CLOSING = "Sincerely,"

ENCLOSURES = [
    "Copy of government-issued photo ID",
    "Copy of proof of address",
]


def render_structural_letter(context: Dict[str, str]) -> str:
    """
    Synthesize a complete letter from the fixed skeleton.

    `context` is the composer's canonical context; missing consumer fields
    are expected to hold their fill-in prompt already.
    """
    sections = [
        "\n".join(filter(None, [
            context.get("consumer_name"),
            context.get("consumer_address"),
            context.get("city_state_zip"),
        ])),
        context.get("date", ""),
        context.get("bureau_address", ""),
    ]

    subject = SUBJECT_LINE
    if context.get("report_number"):
        subject = f"{subject}\nReport Number: {context['report_number']}"
    sections.append(subject)

    sections.append("To Whom It May Concern:")
    sections.append(OPENING)

    items = context.get("disputed_items")
    if items:
        sections.append(f"Disputed items:\n{items}")

    if context.get("legal_citations"):
        sections.append(context["legal_citations"])

    sections.append(INVESTIGATION_PARAGRAPH)
    sections.append(f"{CLOSING}\n\n{context.get('consumer_name', '')}".rstrip())
    sections.append("Enclosures:\n" + "\n".join(f"- {item}" for item in ENCLOSURES))

    return "\n\n".join(section for section in sections if section and section.strip())
