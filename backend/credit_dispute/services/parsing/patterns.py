"""
Credit Dispute Engine - Extraction Rule Tables

Every ordered regex list used by the field extractors is declared here as
data. Within a field, rules are tried by ascending priority and the first
match wins. Section rules are tried in table order and the first rule that
finds any section wins.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern

from .helpers import clean_text

_I = re.IGNORECASE
_M = re.MULTILINE


@dataclass(frozen=True)
class FieldRule:
    """One (pattern -> field) rule. `group` selects the captured value."""
    field: str
    pattern: Pattern
    priority: int
    group: int = 1


@dataclass(frozen=True)
class SectionRule:
    """A section starts after `start` and runs until the first `end` match or end of text."""
    name: str
    start: Pattern
    end: Pattern


def rules_for(rules: Iterable[FieldRule], field: str) -> List[FieldRule]:
    return sorted((r for r in rules if r.field == field), key=lambda r: r.priority)


def match_field(rules: Iterable[FieldRule], field: str, text: str) -> Optional[str]:
    """Run the rules for one field in priority order; first non-empty match wins."""
    for rule in rules_for(rules, field):
        match = rule.pattern.search(text)
        if not match:
            continue
        value = clean_text(match.group(rule.group))
        if value:
            return value
    return None


def match_all(rules: Iterable[FieldRule], field: str, text: str) -> List[str]:
    """Every match of every rule for a field, in priority order, de-duplicated."""
    values: List[str] = []
    for rule in rules_for(rules, field):
        for match in rule.pattern.finditer(text):
            value = clean_text(match.group(rule.group))
            if value and value not in values:
                values.append(value)
    return values


def match_fields(rules: Iterable[FieldRule], text: str) -> Dict[str, str]:
    """First match per field for every field named in the table."""
    rules = list(rules)
    found: Dict[str, str] = {}
    for field in dict.fromkeys(r.field for r in rules):
        value = match_field(rules, field, text)
        if value:
            found[field] = value
    return found


def find_sections(section_rules: List[SectionRule], text: str) -> List[str]:
    """Sections found by the first rule that matches at all."""
    for rule in section_rules:
        sections = []
        for start in rule.start.finditer(text):
            end = rule.end.search(text, start.end())
            body = text[start.end():end.start() if end else len(text)]
            if body.strip():
                sections.append(body)
        if sections:
            return sections
    return []


# =============================================================================
# SECTION HEADERS
# =============================================================================

_LINE_END = r"[ \t]*:?[ \t]*$"

_ACCOUNT_SUBSECTIONS = (
    r"(?:revolving|installment|mortgage|open|closed|collection|negative|adverse|satisfactory)\s+accounts"
)

_REPORT_TAIL = (
    r"public\s+records?|public\s+record\s+information|additional\s+information|"
    r"disclaimers?|end\s+of\s+report|summary"
)

ACCOUNT_SECTION_RULES: List[SectionRule] = [
    SectionRule(
        name="accounts",
        start=re.compile(
            r"^[ \t]*(?:credit\s+accounts|accounts|trade\s*lines?|account\s+(?:information|history|details))"
            + _LINE_END, _I | _M),
        end=re.compile(
            r"^[ \t]*(?:inquiries|credit\s+inquiries|requests\s+for\s+your\s+credit\s+history|"
            + _REPORT_TAIL + r")" + _LINE_END, _I | _M),
    ),
    SectionRule(
        name="account_subsections",
        start=re.compile(r"^[ \t]*" + _ACCOUNT_SUBSECTIONS + _LINE_END, _I | _M),
        end=re.compile(
            r"^[ \t]*(?:" + _ACCOUNT_SUBSECTIONS + r"|inquiries|credit\s+inquiries|"
            r"requests\s+for\s+your\s+credit\s+history|" + _REPORT_TAIL + r")" + _LINE_END, _I | _M),
    ),
]

INQUIRY_SECTION_RULES: List[SectionRule] = [
    SectionRule(
        name="inquiries",
        start=re.compile(
            r"^[ \t]*(?:credit\s+inquiries|(?:hard|regular|soft|promotional)\s+inquiries|inquiries|"
            r"requests\s+for\s+your\s+credit\s+history)" + _LINE_END, _I | _M),
        end=re.compile(
            r"^[ \t]*(?:credit\s+accounts|accounts|trade\s*lines?|" + _ACCOUNT_SUBSECTIONS + r"|"
            + _REPORT_TAIL + r")" + _LINE_END, _I | _M),
    ),
]

PUBLIC_RECORD_SECTION_RULES: List[SectionRule] = [
    SectionRule(
        name="public_records",
        start=re.compile(r"^[ \t]*(?:public\s+records?|public\s+record\s+information)" + _LINE_END, _I | _M),
        end=re.compile(
            r"^[ \t]*(?:inquiries|credit\s+inquiries|requests\s+for\s+your\s+credit\s+history|"
            r"credit\s+accounts|accounts|trade\s*lines?|" + _ACCOUNT_SUBSECTIONS + r"|"
            r"additional\s+information|disclaimers?|end\s+of\s+report|summary)" + _LINE_END, _I | _M),
    ),
]

# Keyword checklist for blocks when no account section header is found
ACCOUNT_BLOCK_KEYWORDS = [
    "Account Number", "Date Opened", "Payment Status", "Account Status",
    "High Credit", "Credit Limit", "Balance", "Monthly Payment", "Past Due",
    "Payment History", "Date of Last Payment", "Current Status",
]

ACCOUNT_KEYWORD_BLOCK_MIN_LENGTH = 100
ACCOUNT_BLOCK_MIN_LENGTH = 50
PUBLIC_RECORD_BLOCK_MIN_LENGTH = 20


# =============================================================================
# ACCOUNT FIELDS
# =============================================================================

_NAME_SUFFIXES = r"(?:BANK|CARD|AUTO|LOAN|LOANS|MORTGAGE|FINANCE|FINANCIAL|CREDIT|FUND|HOME|SERVICES|SERVICING)"

ACCOUNT_FIELD_RULES: List[FieldRule] = [
    # account_name
    FieldRule("account_name", re.compile(
        r"(?:Creditor(?:\s+Name)?|Subscriber(?:\s+Name)?|Company|Bank|Account\s+Name|Furnisher)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("account_name", re.compile(
        r"\A[ \t]*([A-Z][A-Za-z0-9 &.,'/-]*?[A-Za-z0-9.])[ \t]*(?:\r?\n| {2,}|\Z)"), 20),
    FieldRule("account_name", re.compile(
        r"\b([A-Z][A-Z0-9 &.,'-]{2,}?" + _NAME_SUFFIXES + r")\b", _I), 30),

    # account_number
    FieldRule("account_number", re.compile(
        r"(?:Account|Loan|Card)\s+(?:#|Number|No\.?)[ \t]*:?[ \t]*([0-9Xx*]+(?:[- ][0-9Xx*]+)*)", _I), 10),
    FieldRule("account_number", re.compile(
        r"(?:Account|Loan|Card)(?:\s+(?:#|Number|No\.?))?[ \t]*:?[ \t]*([0-9Xx*]{4,})", _I), 20),
    FieldRule("account_number", re.compile(r"(?:#|Number|No\.?)[ \t]*:?[ \t]*([0-9Xx*]{4,})", _I), 30),

    # account_type
    FieldRule("account_type", re.compile(
        r"(?:Account\s+Type|Loan\s+Type|Type\s+of\s+Loan|Type\s+of\s+Account)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("account_type", re.compile(r"(?<![A-Za-z])Type[ \t]*:[ \t]*([^\n\r]+)", _I), 20),

    # balance
    FieldRule("balance", re.compile(
        r"(?:Current\s+Balance|Balance\s+Amount|Current\s+Amount|(?<![Hh]igh )Balance)[ \t]*:[ \t]*\$?[ \t]*(\(?[\d,]+(?:\.\d{1,2})?\)?)", _I), 10),
    FieldRule("balance", re.compile(r"(?<![Hh]igh )Balance(?:\s+as\s+of[^:\n]*|\s+Date)?[ \t]*:[ \t]*\$?[ \t]*([\d,]+(?:\.\d{1,2})?)", _I), 20),
    FieldRule("balance", re.compile(r"(?<![A-Za-z])Amount[ \t]*:[ \t]*\$?[ \t]*([\d,]+(?:\.\d{1,2})?)", _I), 30),

    # credit_limit
    FieldRule("credit_limit", re.compile(
        r"(?:Credit\s+Limit|Limit)[ \t]*:[ \t]*\$?[ \t]*([\d,]+(?:\.\d{1,2})?)", _I), 10),
    FieldRule("credit_limit", re.compile(
        r"(?:High\s+Credit|High\s+Balance|Original\s+Amount)[ \t]*:[ \t]*\$?[ \t]*([\d,]+(?:\.\d{1,2})?)", _I), 20),

    # payment_status
    FieldRule("payment_status", re.compile(
        r"(?:Payment\s+Status|Pay\s+Status|Account\s+Status|Current\s+Status)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("payment_status", re.compile(r"(?<![A-Za-z])Status[ \t]*:[ \t]*([^\n\r]+)", _I), 20),

    # date_opened
    FieldRule("date_opened", re.compile(
        r"(?:Date\s+Opened|Opened\s+Date|Open\s+Date|Account\s+Opened\s+Date)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("date_opened", re.compile(r"Opened\s+(?:on|in|since)[ \t]*:?[ \t]*([^\n\r]+)", _I), 20),
    FieldRule("date_opened", re.compile(r"(?<![A-Za-z])Opened[ \t]*:[ \t]*([^\n\r]+)", _I), 30),

    # date_reported
    FieldRule("date_reported", re.compile(
        r"(?:Date\s+Reported|Reported\s+Date|Last\s+Reported|Last\s+Updated|Report\s+Date|Date\s+Updated)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("date_reported", re.compile(r"(?<![A-Za-z])Reported[ \t]*:[ \t]*([^\n\r]+)", _I), 20),

    # last_activity
    FieldRule("last_activity", re.compile(
        r"(?:Date\s+of\s+Last\s+(?:Payment|Activity)|Last\s+(?:Payment|Activity)(?:\s+Date)?)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
]

# Remarks collect every match rather than the first
ACCOUNT_REMARK_RULES: List[FieldRule] = [
    FieldRule("remarks", re.compile(r"(?:Remarks|Comments|Notes|Comment)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("remarks", re.compile(r"(?:Disputed\s+Information|Dispute)[ \t]*:[ \t]*([^\n\r]+)", _I), 20),
]

# Values that are really labels captured by a loose rule
ACCOUNT_NAME_REJECTS = {
    "ACCOUNT", "ACCOUNTS", "ACCOUNT INFORMATION", "ACCOUNT DETAILS", "CREDIT ACCOUNTS",
    "TRADELINES", "TRADE LINES", "PAYMENT HISTORY", "SUMMARY",
}

UNKNOWN_ACCOUNT_NAME_MIN_LENGTH = 4


# =============================================================================
# ACCOUNT FALLBACKS
# =============================================================================

COMMON_CREDITORS = [
    "BANK OF AMERICA", "CHASE", "CAPITAL ONE", "DISCOVER", "AMERICAN EXPRESS",
    "WELLS FARGO", "CITI", "US BANK", "PNC", "TD BANK", "SYNCHRONY", "BARCLAYS",
    "CREDIT ONE", "FIRST PREMIER", "GOLDMAN SACHS", "USAA", "NAVY FEDERAL",
    "CARMAX", "TOYOTA", "HONDA", "BMW", "MERCEDES", "FORD", "GM", "CHRYSLER",
]

CREDITOR_WINDOW_BEFORE = 100
CREDITOR_WINDOW_AFTER = 300

CREDITOR_SCAN_RULES: List[FieldRule] = [
    FieldRule("account_number", re.compile(
        r"(?:Account|Loan|Card)\s+(?:#|Number|No\.?)[ \t]*:[ \t]*([0-9Xx*]+(?:[- ][0-9Xx*]+)*)", _I), 10),
    FieldRule("balance", re.compile(r"(?:Balance|Amount)[ \t]*:[ \t]*\$?[ \t]*([\d,]+(?:\.\d{1,2})?)", _I), 10),
]

# (account type label, keyword pattern) for generic placeholder accounts
PLACEHOLDER_ACCOUNT_TYPES = [
    ("Credit Card", re.compile(r"credit\s+card", _I)),
    ("Mortgage", re.compile(r"mortgage", _I)),
    ("Auto Loan", re.compile(r"auto\s+loan", _I)),
    ("Personal Loan", re.compile(r"personal\s+loan", _I)),
    ("Student Loan", re.compile(r"student\s+loan", _I)),
    ("Collection", re.compile(r"collection", _I)),
]


# =============================================================================
# INQUIRIES
# =============================================================================

_INQ_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4}|[A-Za-z]{3,9}\.?\s+\d{1,2},\s+\d{4})"

# Layouts, tried in sequence per line; the first layout with a real creditor wins.
INQUIRY_LAYOUTS = [
    # Inquiry Date: 01/15/2023  Creditor: CAPITAL ONE
    ("labeled", re.compile(
        r"Inquiry\s+Date[ \t]*:[ \t]*" + _INQ_DATE
        + r"[ \t,;]+(?:Creditor|Company|Subscriber)(?:\s+Name)?[ \t]*:[ \t]*([^\n\r]+?)[ \t]*$", _I | _M), 1, 2),
    # 01/15/2023  CAPITAL ONE
    ("date_first", re.compile(r"^[ \t]*" + _INQ_DATE + r"[ \t]+(?:[-|:][ \t]*)?([^\n\r]+?)[ \t]*$", _M), 1, 2),
    # CAPITAL ONE  01/15/2023
    ("creditor_first", re.compile(r"^[ \t]*([^\n\r]+?)[ \t]*(?:[-|:,][ \t]*)?[ \t]" + _INQ_DATE + r"[ \t]*$", _M), 2, 1),
]

# Blocks read when no inquiry header matched (lower case, see contains_any)
INQUIRY_BLOCK_KEYWORDS = ["inquiry", "inquiries", "inquired", "permissible purpose", "requested by"]

# Tabular rows: exactly two cells split by tabs, pipes, or runs of 2+ spaces
INQUIRY_CELL_SPLIT_RE = re.compile(r"\t+|[ \t]*\|[ \t]*|[ ]{2,}")

INQUIRY_PLACEHOLDER_CREDITORS = {"N/A", "NA", "-", "--", "NONE", "UNKNOWN"}

INQUIRY_HEADER_WORDS = {
    "CREDITOR", "CREDITOR NAME", "COMPANY", "COMPANY NAME", "SUBSCRIBER", "DATE",
    "INQUIRY DATE", "DATE OF INQUIRY", "NAME",
}


# =============================================================================
# PUBLIC RECORDS
# =============================================================================

PUBLIC_RECORD_FIELD_RULES: List[FieldRule] = [
    FieldRule("record_type", re.compile(r"(?:Record\s+Type|Type)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("record_type", re.compile(r"(Bankruptcy(?:\s+Chapter\s+\d+)?|Tax\s+Lien|Judgment|Civil\s+Claim)", _I), 20, 1),
    FieldRule("date_reported", re.compile(r"(?:Filed\s+Date|Date\s+Filed|Report\s+Date|Date\s+Reported|Date)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("date_reported", re.compile(r"(?:Filed|Reported)\s+(?:on|in)[ \t]*:?[ \t]*([^\n\r]+)", _I), 20),
    FieldRule("status", re.compile(r"(?:Status|Disposition)[ \t]*:[ \t]*([^\n\r]+)", _I), 10),
    FieldRule("status", re.compile(r"\b(Satisfied|Dismissed|Discharged|Paid|Unpaid)\b", _I), 20),
]

PUBLIC_RECORD_EMPTY_RE = re.compile(r"\b(?:no|none)\b[^\n]*\b(?:public\s+records?|reported|on\s+file)\b", _I)

# Blocks read when no public record header matched (lower case, see contains_any).
# Blocks carrying account fields are left to the account extractor.
PUBLIC_RECORD_BLOCK_KEYWORDS = ["public record", "bankruptcy", "tax lien", "judgment", "civil claim"]
PUBLIC_RECORD_BLOCK_EXCLUDE = ["account number", "date opened", "payment status", "credit limit"]


# =============================================================================
# PERSONAL INFORMATION
# =============================================================================

_NAME_VALUE = r"([A-Za-z][A-Za-z .,'-]{2,80}?)"

PERSONAL_INFO_RULES: List[FieldRule] = [
    FieldRule("name", re.compile(
        r"^[ \t]*(?:consumer\s+name|full\s+name|name|report\s+for|prepared\s+for|consumer)[ \t]*:[ \t]*"
        + _NAME_VALUE + r"[ \t]*$", _I | _M), 10),
    FieldRule("name", re.compile(
        r"^[ \t]*(?:personal\s+information|personal\s+profile)" + _LINE_END + r"\s*^[ \t]*"
        + _NAME_VALUE + r"[ \t]*$", _I | _M), 20),

    FieldRule("address", re.compile(
        r"^[ \t]*(?:current\s+address|address|street|residence)[ \t]*:[ \t]*(\d[A-Za-z0-9 .#,'/-]{4,120}?)[ \t]*$", _I | _M), 10),
    FieldRule("address", re.compile(
        r"^[ \t]*(\d+[ \t]+[A-Za-z0-9 .'#-]*?\b(?:ST|AVE|RD|DR|LN|BLVD|PKWY|CIR|CT|WAY|PL|TER|HWY|STREET|AVENUE|"
        r"ROAD|DRIVE|LANE|COURT|CIRCLE|PLACE|BOULEVARD)\b\.?(?:[ \t,]*(?:APT|UNIT|STE|#)[ \t.#]*[A-Za-z0-9-]+)?)[ \t]*$", _I | _M), 20),

    FieldRule("city", re.compile(r"^[ \t]*City[ \t]*:[ \t]*([A-Za-z .'-]{2,30}?)[ \t]*$", _I | _M), 10),
    FieldRule("state", re.compile(r"^[ \t]*State[ \t]*:[ \t]*([A-Za-z]{2})[ \t]*$", _I | _M), 10),
    FieldRule("zip_code", re.compile(r"^[ \t]*(?:ZIP(?:\s+Code)?|Postal\s+Code)[ \t]*:[ \t]*(\d{5}(?:-\d{4})?)\b", _I | _M), 10),

    FieldRule("ssn_last4", re.compile(
        r"(?:SSN|Social\s+Security(?:\s+Number)?)[^A-Za-z0-9\n]{0,5}(?:[Xx*•●]{3}[- ]?[Xx*•●]{2}[- ]?)(\d{4})\b", _I), 10),
    FieldRule("date_of_birth", re.compile(
        r"(?:Date\s+of\s+Birth|Birth\s+Date|DOB|Year\s+of\s+Birth)[ \t]*:?[ \t]*"
        r"(\d{1,2}/\d{1,2}/\d{2,4}|[A-Za-z]{3,9}\.?\s+\d{1,2},\s+\d{4}|\d{4})", _I), 10),
    FieldRule("phone", re.compile(
        r"(?:Phone|Telephone|Tel)(?:\s+Number)?[ \t]*:?[ \t]*(\(?\d{3}\)?[-. ]?\d{3}[-. ]\d{4})", _I), 10),
]

# "City, ST 12345" on its own line
CITY_STATE_ZIP_RE = re.compile(
    r"^[ \t]*([A-Za-z][A-Za-z .'-]{1,30}?),?[ \t]+([A-Z]{2})[ \t]+(\d{5}(?:-\d{4})?)[ \t]*$", _M)

# "123 Main St, Springfield, IL 62701" as a single address value
ADDRESS_WITH_LOCALITY_RE = re.compile(
    r"^(.*?\d.*?),[ \t]*([A-Za-z][A-Za-z .'-]{1,30}?),?[ \t]+([A-Z]{2})[ \t]+(\d{5}(?:-\d{4})?)$")

PERSONAL_LIST_RULES: List[FieldRule] = [
    FieldRule("previous_addresses", re.compile(
        r"^[ \t]*(?:previous|former|prior|other)\s+address(?:es)?[ \t]*:[ \t]*(\d[^\n\r]{4,120}?)[ \t]*$", _I | _M), 10),
    FieldRule("employers", re.compile(
        r"^[ \t]*(?:current\s+|previous\s+|former\s+)?employer(?:\s+name)?[ \t]*:[ \t]*([^\n\r]{2,120}?)[ \t]*$", _I | _M), 10),
    FieldRule("employers", re.compile(r"^[ \t]*employment[ \t]*:[ \t]*([^\n\r]{2,120}?)[ \t]*$", _I | _M), 20),
    FieldRule("aliases", re.compile(
        r"(?:\b(?:also\s+known\s+as|formerly\s+known\s+as|other\s+names?|name\s+variations?|aka)\b|\ba\.k\.a\.?)[ \t]*:?[ \t]*([^\n\r]+?)[ \t]*$", _I | _M), 10),
]

# Header lines introducing a list of previous addresses / employers, one per line
PERSONAL_LIST_SECTIONS = {
    "previous_addresses": re.compile(
        r"^[ \t]*(?:previous|former|prior|other)\s+addresses" + _LINE_END, _I | _M),
    "employers": re.compile(r"^[ \t]*(?:employers|employment\s+history|employment\s+information)" + _LINE_END, _I | _M),
}

NAME_FALSE_POSITIVES = [".com", "llc", "www", "report", ".gov", "apache", "version", "http"]

EMPLOYER_SUFFIXES = {"INC", "INC.", "LLC", "LLP", "LTD", "LTD.", "CO", "CO.", "CORP", "CORP.", "CORPORATION", "NA", "N.A."}


# =============================================================================
# REPORT-LEVEL FIELDS
# =============================================================================

REPORT_NUMBER_RULES: List[FieldRule] = [
    FieldRule("report_number", re.compile(
        r"(?:Report|File|Confirmation)\s+(?:Number|#|No\.?)[ \t]*:?[ \t]*([A-Za-z0-9-]*\d[A-Za-z0-9-]{3,})", _I), 10),
]
