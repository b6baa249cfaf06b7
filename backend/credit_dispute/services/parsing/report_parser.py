"""
Credit Dispute Engine - Report Parser

Runs bureau detection and the four field extractors over salvaged text and
hands their outputs to the ReportAssembler.
"""
from __future__ import annotations
import logging
from typing import Optional

from ...models.ssot import ReportModel
from .accounts import AccountExtractor
from .assembler import ReportAssembler
from .bureau_detector import BureauDetector
from .inquiries import InquiryExtractor
from .patterns import REPORT_NUMBER_RULES, match_field
from .personal_info import PersonalInfoExtractor
from .public_records import PublicRecordExtractor

logger = logging.getLogger(__name__)


class ReportParser:
    """Salvaged text -> ReportModel (SSOT #1)."""

    def __init__(self):
        self.bureau_detector = BureauDetector()
        self.personal_info_extractor = PersonalInfoExtractor()
        self.account_extractor = AccountExtractor()
        self.inquiry_extractor = InquiryExtractor()
        self.public_record_extractor = PublicRecordExtractor()
        self.assembler = ReportAssembler()

    def parse(
        self,
        text: str,
        format_hint: str = "text",
        source_file: Optional[str] = None,
        is_sample_data: bool = False,
    ) -> ReportModel:
        text = text or ""
        detection = self.bureau_detector.detect(text)
        bureaus = detection.bureaus_present

        return self.assembler.assemble(
            raw_text=text,
            detection=detection,
            personal_info=self.personal_info_extractor.extract(text),
            accounts=self.account_extractor.extract(text, bureaus),
            inquiries=self.inquiry_extractor.extract(text, bureaus),
            public_records=self.public_record_extractor.extract(text, bureaus),
            report_number=match_field(REPORT_NUMBER_RULES, "report_number", text),
            source_file=source_file,
            format_hint=format_hint,
            is_sample_data=is_sample_data,
        )


def parse_report_text(text: str, format_hint: str = "text") -> ReportModel:
    """Convenience function to parse already-salvaged text."""
    return ReportParser().parse(text, format_hint=format_hint)
