"""
Credit Dispute Engine - Parsing Helpers

Text cleanup, value parsing and shared vocabulary for the field extractors.
"""
from __future__ import annotations
import re
from datetime import date, datetime
from typing import List, Optional

from dateutil import parser as date_parser

from ...models.ssot import AccountStatus


# =============================================================================
# CONSTANTS
# =============================================================================

NOT_REPORTED = {"", "-", "—", "–", "N/A", "NA", "NONE", "NOT REPORTED", "NOTREPORTED", "NOT AVAILABLE"}

LATE_KEYWORDS = [
    "late", "delinquent", "past due", "30 days", "60 days", "90 days", "120 days",
]

COLLECTION_KEYWORDS = [
    "collection", "placed for collection", "coll svcs", "recovery", "assigned to",
]

CHARGEOFF_KEYWORDS = [
    "charge off", "chargeoff", "charged off", "charge-off",
    "profit and loss", "written off", "write off", "bad debt",
]

NEGATIVE_KEYWORDS = LATE_KEYWORDS + COLLECTION_KEYWORDS + CHARGEOFF_KEYWORDS

REVOLVING_KEYWORDS = ["revolving", "credit card", "charge card", "line of credit", "card"]

BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")

# Default used by dateutil for missing components (e.g. "03/2015" -> 2015-03-01)
_DATE_DEFAULT = datetime(2000, 1, 1)


# =============================================================================
# TEXT / VALUE HELPERS
# =============================================================================

def clean_text(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace, returning None if empty or 'not reported'."""
    if not text:
        return None
    text = re.sub(r"\s+", " ", text).strip()
    text = text.strip(" :;,")
    if text.upper() in NOT_REPORTED:
        return None
    return text


def split_blocks(text: str, min_length: int = 0) -> List[str]:
    """Split on blank lines, keeping blocks of at least min_length characters."""
    return [b for b in BLOCK_SPLIT_RE.split(text) if len(b.strip()) >= min_length]


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """Parse a report date as printed ("03/15/2019", "Mar 15, 2019", "03/2019")."""
    cleaned = clean_text(date_str)
    if not cleaned:
        return None

    formats = ["%m/%d/%Y", "%m/%d/%y", "%Y-%m-%d", "%m-%d-%Y", "%b %d, %Y", "%B %d, %Y"]
    for fmt in formats:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    try:
        return date_parser.parse(cleaned, default=_DATE_DEFAULT).date()
    except (ValueError, OverflowError):
        return None


def parse_year(date_str: Optional[str]) -> Optional[int]:
    """Year of a printed date; falls back to the first 4-digit year in the string."""
    parsed = parse_date(date_str)
    if parsed:
        return parsed.year
    if date_str:
        match = re.search(r"\b(19|20)\d{2}\b", date_str)
        if match:
            return int(match.group(0))
    return None


def parse_money(amount_str: Optional[str]) -> Optional[float]:
    """Parse money string to float."""
    cleaned = clean_text(amount_str)
    if not cleaned:
        return None

    # Remove currency symbols, commas, spaces
    cleaned = re.sub(r"[$,\s]", "", cleaned)

    # Handle negative amounts in parentheses
    is_negative = cleaned.startswith("(") and cleaned.endswith(")")
    if is_negative:
        cleaned = cleaned[1:-1]

    # Trailing period from sentence punctuation
    cleaned = cleaned.rstrip(".")

    try:
        value = float(cleaned)
        return -value if is_negative else value
    except ValueError:
        return None


def contains_any(text: Optional[str], keywords: List[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def classify_account_status(status_str: Optional[str], remarks: Optional[List[str]] = None) -> AccountStatus:
    """Classify open/closed from status text and remarks."""
    combined = " ".join([status_str or ""] + list(remarks or [])).lower()
    if not combined.strip():
        return AccountStatus.UNKNOWN

    if "closed" in combined or "paid off" in combined or "transferred" in combined:
        return AccountStatus.CLOSED
    if "open" in combined or "current" in combined or "pays as agreed" in combined:
        return AccountStatus.OPEN
    return AccountStatus.UNKNOWN


def is_negative_text(status_str: Optional[str], remarks: Optional[List[str]] = None) -> bool:
    combined = " ".join([status_str or ""] + list(remarks or []))
    if contains_any(combined, ["never late", "not late", "no late"]):
        combined = re.sub(r"(?i)\b(never|not|no) late\b", "", combined)
    return contains_any(combined, NEGATIVE_KEYWORDS)


def is_revolving(account_type: Optional[str]) -> bool:
    return contains_any(account_type, REVOLVING_KEYWORDS)
