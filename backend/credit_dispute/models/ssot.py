"""
Credit Dispute Engine - Single Source of Truth Models

These models are the ONLY data structures passed between pipeline stages.
Extractors normalize field aliases before building them; compatibility
aliases (current_balance, creditor_name) exist only in to_dict() output.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Any, Tuple
from uuid import uuid4


# =============================================================================
# ENUMS
# =============================================================================

class Bureau(str, Enum):
    TRANSUNION = "transunion"
    EXPERIAN = "experian"
    EQUIFAX = "equifax"


class Severity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IssueType(str, Enum):
    LATE_PAYMENT = "late_payment"
    COLLECTION = "collection"
    CHARGE_OFF = "charge_off"
    INQUIRY = "inquiry"
    BANKRUPTCY = "bankruptcy"
    PERSONAL_INFO = "personal_info"
    DUPLICATE_ACCOUNT = "duplicate_account"
    MISSING_DATES = "missing_dates"
    ACCOUNT_REVIEW = "account_review"


class AccountStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    UNKNOWN = "unknown"


class AccountSource(str, Enum):
    """How an account record was recovered from the text."""
    STRUCTURED = "structured"
    CREDITOR_SCAN = "creditor_scan"
    PLACEHOLDER = "placeholder"


class LetterStatus(str, Enum):
    DRAFT = "draft"
    READY = "ready"
    SENT = "sent"


class Resolution(str, Enum):
    """Which resolver state produced a letter."""
    EXACT = "exact"
    PARTIAL = "partial"
    GENERIC = "generic"
    STRUCTURAL = "structural"
    MINIMAL = "minimal"


UNKNOWN_ACCOUNT_NAME = "Unknown Account"


def _enum_value(value: Optional[Enum]) -> Optional[str]:
    return value.value if value is not None else None


# =============================================================================
# SSOT #1: EXTRACTION OUTPUT
# =============================================================================

@dataclass
class BureausPresent:
    experian: bool = False
    equifax: bool = False
    transunion: bool = False

    def is_present(self, bureau: Bureau) -> bool:
        return bool(getattr(self, bureau.value))

    def present(self) -> List[Bureau]:
        """Bureaus marked present, in a stable order."""
        return [b for b in (Bureau.EXPERIAN, Bureau.EQUIFAX, Bureau.TRANSUNION) if self.is_present(b)]

    def count(self) -> int:
        return len(self.present())

    def to_dict(self) -> Dict[str, bool]:
        return {"experian": self.experian, "equifax": self.equifax, "transunion": self.transunion}


@dataclass
class PersonalInfo:
    """Consumer identity block. Every field is optional."""
    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    previous_addresses: List[str] = field(default_factory=list)
    employers: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    ssn_last4: Optional[str] = None
    date_of_birth: Optional[str] = None
    phone: Optional[str] = None
    # field name -> split values for comma-joined multi-value fields
    multi_value_fields: Dict[str, List[str]] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not any([
            self.name, self.address, self.city, self.state, self.zip_code,
            self.previous_addresses, self.employers, self.aliases,
            self.ssn_last4, self.date_of_birth, self.phone,
        ])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "address": self.address,
            "city": self.city,
            "state": self.state,
            "zip_code": self.zip_code,
            "previous_addresses": list(self.previous_addresses),
            "employers": list(self.employers),
            "aliases": list(self.aliases),
            "ssn_last4": self.ssn_last4,
            "date_of_birth": self.date_of_birth,
            "phone": self.phone,
            "multi_value_fields": {k: list(v) for k, v in self.multi_value_fields.items()},
        }


@dataclass
class Account:
    """
    A single tradeline as recovered from the report text.

    Dates are kept as printed; rules parse them on demand.
    `balance` is the only stored balance field.
    """
    account_id: str = field(default_factory=lambda: str(uuid4()))
    account_name: str = UNKNOWN_ACCOUNT_NAME
    account_number: Optional[str] = None
    account_type: Optional[str] = None
    balance: Optional[float] = None
    credit_limit: Optional[float] = None
    payment_status: Optional[str] = None
    status: AccountStatus = AccountStatus.UNKNOWN
    date_opened: Optional[str] = None
    date_reported: Optional[str] = None
    last_activity: Optional[str] = None
    is_negative: bool = False
    bureau: Optional[Bureau] = None
    remarks: List[str] = field(default_factory=list)
    source: AccountSource = AccountSource.STRUCTURED

    @property
    def current_balance(self) -> Optional[float]:
        return self.balance

    def to_dict(self) -> Dict[str, Any]:
        return {
            "account_id": self.account_id,
            "account_name": self.account_name,
            "account_number": self.account_number,
            "account_type": self.account_type,
            "balance": self.balance,
            "current_balance": self.balance,
            "credit_limit": self.credit_limit,
            "payment_status": self.payment_status,
            "status": self.status.value,
            "date_opened": self.date_opened,
            "date_reported": self.date_reported,
            "last_activity": self.last_activity,
            "is_negative": self.is_negative,
            "bureau": _enum_value(self.bureau),
            "remarks": list(self.remarks),
            "source": self.source.value,
        }


@dataclass
class Inquiry:
    inquiry_date: Optional[str] = None
    creditor: str = ""
    bureau: Optional[Bureau] = None

    @property
    def creditor_name(self) -> str:
        return self.creditor

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inquiry_date": self.inquiry_date,
            "creditor": self.creditor,
            "creditor_name": self.creditor,
            "bureau": _enum_value(self.bureau),
        }


@dataclass
class PublicRecord:
    record_type: Optional[str] = None
    bureau: Optional[Bureau] = None
    date_reported: Optional[str] = None
    status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_type": self.record_type,
            "bureau": _enum_value(self.bureau),
            "date_reported": self.date_reported,
            "status": self.status,
        }


@dataclass
class ReportSummary:
    total_accounts: int = 0
    open_accounts: int = 0
    closed_accounts: int = 0
    negative_accounts: int = 0
    total_inquiries: int = 0
    total_public_records: int = 0
    account_types: Dict[str, int] = field(default_factory=dict)
    total_balance: float = 0.0
    total_credit_limit: float = 0.0
    # None when no revolving limit is known
    utilization: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_accounts": self.total_accounts,
            "open_accounts": self.open_accounts,
            "closed_accounts": self.closed_accounts,
            "negative_accounts": self.negative_accounts,
            "total_inquiries": self.total_inquiries,
            "total_public_records": self.total_public_records,
            "account_types": dict(self.account_types),
            "total_balance": self.total_balance,
            "total_credit_limit": self.total_credit_limit,
            "utilization": self.utilization,
        }


# =============================================================================
# SSOT #2: CLASSIFICATION OUTPUT
# =============================================================================

@dataclass(frozen=True)
class LegalCitation:
    law: str
    section: str
    citation_text: str

    def to_dict(self) -> Dict[str, str]:
        return {"law": self.law, "section": self.section, "citation_text": self.citation_text}


@dataclass(frozen=True)
class AccountRef:
    """Name + number reference carried by an Issue; never the full Account."""
    account_name: str
    account_number: Optional[str] = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountRef":
        return cls(account_name=account.account_name, account_number=account.account_number)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"account_name": self.account_name, "account_number": self.account_number}


@dataclass(frozen=True)
class Issue:
    """A disputable finding. Immutable once the classifier emits it."""
    type: IssueType
    title: str
    description: str
    severity: Severity
    account: Optional[AccountRef] = None
    bureau: Optional[Bureau] = None
    legal_citations: Tuple[LegalCitation, ...] = ()
    related_accounts: Tuple[AccountRef, ...] = ()
    details: Mapping[str, Any] = field(default_factory=dict, compare=False)
    issue_id: str = field(default_factory=lambda: str(uuid4()))

    def __post_init__(self):
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def with_citations(self, citations: List[LegalCitation]) -> "Issue":
        return replace(self, legal_citations=tuple(citations))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "issue_id": self.issue_id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "account": self.account.to_dict() if self.account else None,
            "bureau": _enum_value(self.bureau),
            "legal_citations": [c.to_dict() for c in self.legal_citations],
            "related_accounts": [r.to_dict() for r in self.related_accounts],
            "details": dict(self.details),
        }


@dataclass
class ReportModel:
    """
    SSOT #1 - output of the extraction stages.

    Invariant: primary_bureau, when set, is marked present in bureaus_present.
    Issues are attached by with_issues(), which returns a new model.
    """
    report_id: str = field(default_factory=lambda: str(uuid4()))
    bureaus_present: BureausPresent = field(default_factory=BureausPresent)
    primary_bureau: Optional[Bureau] = None
    personal_info: PersonalInfo = field(default_factory=PersonalInfo)
    accounts: List[Account] = field(default_factory=list)
    inquiries: List[Inquiry] = field(default_factory=list)
    public_records: List[PublicRecord] = field(default_factory=list)
    raw_text: str = ""
    issues: List[Issue] = field(default_factory=list)
    summary: ReportSummary = field(default_factory=ReportSummary)
    report_number: Optional[str] = None
    source_file: Optional[str] = None
    format_hint: str = "text"
    is_sample_data: bool = False
    parse_timestamp: datetime = field(default_factory=datetime.utcnow)

    def with_issues(self, issues: List[Issue]) -> "ReportModel":
        return replace(self, issues=list(issues))

    def to_dict(self, include_raw_text: bool = False) -> Dict[str, Any]:
        data = {
            "report_id": self.report_id,
            "bureaus_present": self.bureaus_present.to_dict(),
            "primary_bureau": _enum_value(self.primary_bureau),
            "personal_info": self.personal_info.to_dict(),
            "accounts": [a.to_dict() for a in self.accounts],
            "inquiries": [i.to_dict() for i in self.inquiries],
            "public_records": [r.to_dict() for r in self.public_records],
            "issues": [i.to_dict() for i in self.issues],
            "summary": self.summary.to_dict(),
            "report_number": self.report_number,
            "source_file": self.source_file,
            "format_hint": self.format_hint,
            "is_sample_data": self.is_sample_data,
            "parse_timestamp": self.parse_timestamp.isoformat(),
        }
        if include_raw_text:
            data["raw_text"] = self.raw_text
        return data


# =============================================================================
# SSOT #3: COMPOSITION OUTPUT
# =============================================================================

@dataclass(frozen=True)
class LetterTemplate:
    name: str
    type: str
    body_text: str
    placeholder_tokens: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Letter:
    """Final dispute letter. `content` is never empty."""
    title: str
    content: str
    bureau: str
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    error_type: str = "general"
    status: LetterStatus = LetterStatus.DRAFT
    resolution: Resolution = Resolution.STRUCTURAL
    template_name: Optional[str] = None
    issue_ids: Tuple[str, ...] = ()
    letter_id: str = field(default_factory=lambda: str(uuid4()))
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "letter_id": self.letter_id,
            "title": self.title,
            "content": self.content,
            "bureau": self.bureau,
            "account_name": self.account_name,
            "account_number": self.account_number,
            "error_type": self.error_type,
            "status": self.status.value,
            "resolution": self.resolution.value,
            "template_name": self.template_name,
            "issue_ids": list(self.issue_ids),
            "created_at": self.created_at.isoformat(),
        }
