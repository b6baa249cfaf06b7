"""Credit Dispute Engine - Parsing Layer

This layer converts salvaged report text into ReportModel (SSOT #1).
All downstream modules MUST use ReportModel exclusively.
"""
from .salvage import TextSalvage, SalvageResult, salvage_text
from .bureau_detector import BureauDetector, BureauDetection, detect_bureaus, normalize_bureau_name
from .accounts import AccountExtractor, extract_accounts
from .inquiries import InquiryExtractor, extract_inquiries
from .public_records import PublicRecordExtractor, extract_public_records
from .personal_info import PersonalInfoExtractor, extract_personal_info
from .assembler import ReportAssembler, compute_summary
from .report_parser import ReportParser, parse_report_text

__all__ = [
    "TextSalvage", "SalvageResult", "salvage_text",
    "BureauDetector", "BureauDetection", "detect_bureaus", "normalize_bureau_name",
    "AccountExtractor", "extract_accounts",
    "InquiryExtractor", "extract_inquiries",
    "PublicRecordExtractor", "extract_public_records",
    "PersonalInfoExtractor", "extract_personal_info",
    "ReportAssembler", "compute_summary",
    "ReportParser", "parse_report_text",
]
