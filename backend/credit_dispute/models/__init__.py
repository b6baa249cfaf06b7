"""Credit Dispute Engine - Data Models"""
from .ssot import (
    # Enums
    Bureau, Severity, IssueType, AccountStatus, AccountSource, LetterStatus, Resolution,
    # SSOT #1: Extraction Output
    BureausPresent, PersonalInfo, Account, Inquiry, PublicRecord, ReportSummary, ReportModel,
    # SSOT #2: Classification Output
    LegalCitation, AccountRef, Issue,
    # SSOT #3: Composition Output
    LetterTemplate, Letter,
    UNKNOWN_ACCOUNT_NAME,
)

__all__ = [
    "Bureau", "Severity", "IssueType", "AccountStatus", "AccountSource", "LetterStatus", "Resolution",
    "BureausPresent", "PersonalInfo", "Account", "Inquiry", "PublicRecord", "ReportSummary", "ReportModel",
    "LegalCitation", "AccountRef", "Issue",
    "LetterTemplate", "Letter",
    "UNKNOWN_ACCOUNT_NAME",
]
