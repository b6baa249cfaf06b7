"""
Credit Dispute Engine - Issue Rules

Deterministic rule-based issue detection. Each rule is independent and
returns zero or more Issues; rule order only affects list order.

Rule Categories:
1. Personal Info Rules - identity block anomalies
2. Account Rules - negative status and missing dates on single accounts
3. Duplicate Rules - the same debt reported under several servicers
4. Temporal Rules - stale bankruptcies and inquiries
"""
from __future__ import annotations
import logging
import math
import re
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional

from ...models.ssot import (
    Account, AccountRef, AccountSource, Bureau, Inquiry, Issue, IssueType, PersonalInfo,
    PublicRecord, Severity,
)
from ..parsing.helpers import (
    CHARGEOFF_KEYWORDS, COLLECTION_KEYWORDS, contains_any, is_negative_text, parse_date, parse_year,
)

logger = logging.getLogger(__name__)


STALE_BANKRUPTCY_YEARS = 7
STALE_INQUIRY_DAYS = 365

STUDENT_LOAN_RE = re.compile(
    r"\b(?:student|edu(?:cation|cational)?|navient|sallie|dept\.?\s+of\s+ed(?:ucation)?|"
    r"department\s+of\s+education|nelnet|great\s+lakes|fedloan|mohela|aidvantage)\b",
    re.IGNORECASE,
)

BANKRUPTCY_KEYWORDS = ["bankrupt", "chapter 7", "chapter 13", "chapter 11"]

_FIELD_LABELS = {"name": "name", "address": "address", "employers": "employer"}


def _round_balance(balance: float) -> int:
    """Nearest whole currency unit, halves rounded up."""
    return int(math.floor(balance + 0.5))


# =============================================================================
# PERSONAL INFO RULES
# =============================================================================

class PersonalInfoRules:
    """Anomalies in the consumer identity block."""

    @staticmethod
    def check_multi_value_fields(personal_info: PersonalInfo, bureau: Optional[Bureau]) -> List[Issue]:
        """
        A name/address/employer field holding several comma-joined values
        suggests mixed files or reporting errors.
        """
        issues = []
        for field_name, values in personal_info.multi_value_fields.items():
            label = _FIELD_LABELS.get(field_name, field_name)
            listed = "; ".join(values)
            issues.append(Issue(
                type=IssueType.PERSONAL_INFO,
                title=f"Multiple values reported for {label}",
                description=(
                    f"My {label} is reported with {len(values)} different values ({listed}). "
                    f"Only my correct {label} should appear in my file."
                ),
                severity=Severity.MEDIUM,
                bureau=bureau,
                details={"field": field_name, "values": list(values)},
            ))
        return issues


# =============================================================================
# ACCOUNT RULES
# =============================================================================

class AccountRules:
    """Rules over a single account."""

    @staticmethod
    def check_negative_status(account: Account, bureau: Optional[Bureau]) -> List[Issue]:
        """Late, collection or charge-off vocabulary in status or remarks."""
        combined = " ".join([account.payment_status or ""] + account.remarks)
        if not is_negative_text(account.payment_status, account.remarks):
            return []

        if contains_any(combined, CHARGEOFF_KEYWORDS):
            issue_type, title = IssueType.CHARGE_OFF, f"Charge-off reported on {account.account_name}"
        elif contains_any(combined, COLLECTION_KEYWORDS):
            issue_type, title = IssueType.COLLECTION, f"Collection reported on {account.account_name}"
        else:
            issue_type, title = IssueType.LATE_PAYMENT, f"Late payment reported on {account.account_name}"

        status = account.payment_status or "; ".join(account.remarks)
        return [Issue(
            type=issue_type,
            title=title,
            description=(
                f"The account {account.account_name} is reported with a negative status "
                f"(\"{status}\"). I dispute the accuracy of this reporting."
            ),
            severity=Severity.HIGH,
            account=AccountRef.from_account(account),
            bureau=bureau,
            details={"payment_status": account.payment_status, "remarks": list(account.remarks)},
        )]

    @staticmethod
    def check_missing_dates(account: Account, bureau: Optional[Bureau]) -> List[Issue]:
        """Structured account with neither an open date nor a report date."""
        if account.source != AccountSource.STRUCTURED:
            return []
        if account.date_opened or account.date_reported:
            return []
        return [Issue(
            type=IssueType.MISSING_DATES,
            title=f"Missing dates on {account.account_name}",
            description=(
                f"The account {account.account_name} is reported without a date opened or a date "
                f"reported, so its accuracy and reporting period cannot be verified."
            ),
            severity=Severity.MEDIUM,
            account=AccountRef.from_account(account),
            bureau=bureau,
        )]


# =============================================================================
# DUPLICATE RULES
# =============================================================================

class DuplicateRules:
    """The same loan reported by several servicers."""

    @staticmethod
    def is_student_loan(account: Account) -> bool:
        return bool(STUDENT_LOAN_RE.search(account.account_name or "")) or contains_any(
            account.account_type, ["student"]
        )

    @staticmethod
    def check_duplicate_student_loans(accounts: List[Account], default_bureau: Optional[Bureau]) -> List[Issue]:
        """Group student loans by balance rounded to a whole unit; each group of 2+ is one issue."""
        groups: Dict[int, List[Account]] = defaultdict(list)
        for account in accounts:
            if account.balance is None or not DuplicateRules.is_student_loan(account):
                continue
            groups[_round_balance(account.balance)].append(account)

        issues = []
        for rounded, members in groups.items():
            if len(members) < 2:
                continue
            names = ", ".join(a.account_name for a in members)
            bureaus = {a.bureau for a in members if a.bureau}
            issues.append(Issue(
                type=IssueType.DUPLICATE_ACCOUNT,
                title="Duplicate student loan reporting",
                description=(
                    f"The same student loan balance of ${rounded:,} is reported by {len(members)} "
                    f"accounts ({names}). A single debt must not be reported more than once."
                ),
                severity=Severity.HIGH,
                account=AccountRef.from_account(members[0]),
                bureau=bureaus.pop() if len(bureaus) == 1 else default_bureau,
                related_accounts=tuple(AccountRef.from_account(a) for a in members),
                details={"rounded_balance": rounded},
            ))
        return issues


# =============================================================================
# TEMPORAL RULES
# =============================================================================

class TemporalRules:
    """Date-based rules. `as_of` is the evaluation date."""

    @staticmethod
    def is_bankruptcy_account(account: Account) -> bool:
        text = " ".join(filter(None, [
            account.account_name, account.account_type, account.payment_status, *account.remarks,
        ]))
        return contains_any(text, BANKRUPTCY_KEYWORDS)

    @staticmethod
    def check_stale_bankruptcy_account(account: Account, bureau: Optional[Bureau], as_of: date) -> List[Issue]:
        if not TemporalRules.is_bankruptcy_account(account):
            return []
        year = parse_year(account.date_opened) or parse_year(account.date_reported)
        if year is None or as_of.year - year <= STALE_BANKRUPTCY_YEARS:
            return []
        return [Issue(
            type=IssueType.BANKRUPTCY,
            title=f"Outdated bankruptcy on {account.account_name}",
            description=(
                f"The account {account.account_name} reports a bankruptcy from {year}, more than "
                f"{STALE_BANKRUPTCY_YEARS} years ago. This information is outdated."
            ),
            severity=Severity.HIGH,
            account=AccountRef.from_account(account),
            bureau=bureau,
            details={"year": year},
        )]

    @staticmethod
    def check_stale_bankruptcy_record(record: PublicRecord, bureau: Optional[Bureau], as_of: date) -> List[Issue]:
        if not contains_any(record.record_type, BANKRUPTCY_KEYWORDS):
            return []
        year = parse_year(record.date_reported)
        if year is None or as_of.year - year <= STALE_BANKRUPTCY_YEARS:
            return []
        return [Issue(
            type=IssueType.BANKRUPTCY,
            title="Outdated bankruptcy public record",
            description=(
                f"A {record.record_type} public record from {year} is still reported, more than "
                f"{STALE_BANKRUPTCY_YEARS} years ago. This information is outdated."
            ),
            severity=Severity.HIGH,
            bureau=bureau,
            details={"year": year, "record_type": record.record_type, "status": record.status},
        )]

    @staticmethod
    def check_stale_inquiry(inquiry: Inquiry, bureau: Optional[Bureau], as_of: date) -> List[Issue]:
        inquiry_date = parse_date(inquiry.inquiry_date)
        if inquiry_date is None:
            return []
        age_days = (as_of - inquiry_date).days
        if age_days <= STALE_INQUIRY_DAYS:
            return []
        return [Issue(
            type=IssueType.INQUIRY,
            title=f"Outdated inquiry by {inquiry.creditor}",
            description=(
                f"An inquiry by {inquiry.creditor} dated {inquiry.inquiry_date} is more than one "
                f"year old and should no longer be reported."
            ),
            severity=Severity.MEDIUM,
            account=AccountRef(account_name=inquiry.creditor),
            bureau=bureau,
            details={"inquiry_date": inquiry.inquiry_date, "age_days": age_days},
        )]


# =============================================================================
# FALLBACK
# =============================================================================

def representative_account(accounts: List[Account]) -> Optional[Account]:
    """First negative account, else first structured account, else first account."""
    for account in accounts:
        if account.is_negative:
            return account
    for account in accounts:
        if account.source == AccountSource.STRUCTURED:
            return account
    return accounts[0] if accounts else None


def account_review_issue(account: Account, bureau: Optional[Bureau]) -> Issue:
    return Issue(
        type=IssueType.ACCOUNT_REVIEW,
        title=f"Review reporting of {account.account_name}",
        description=(
            f"I request verification that the account {account.account_name} is reported "
            f"completely and accurately."
        ),
        severity=Severity.LOW,
        account=AccountRef.from_account(account),
        bureau=bureau,
    )
