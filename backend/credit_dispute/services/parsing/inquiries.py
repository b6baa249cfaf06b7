"""
Credit Dispute Engine - Inquiry Extractor

Inquiry sections are read line by line. Each line is tried against the
labeled, date-then-creditor and creditor-then-date layouts in sequence,
then as a tabular two-column row. Rows whose creditor is a placeholder
are discarded. Without an inquiry header, blank-line blocks mentioning
inquiries are read instead.
"""
from __future__ import annotations
import logging
from typing import List, Optional, Tuple

from ...models.ssot import Bureau, BureausPresent, Inquiry
from .bureau_detector import attribute_bureau, detect_bureau_in_block
from .helpers import clean_text, contains_any, parse_date, split_blocks
from .patterns import (
    INQUIRY_BLOCK_KEYWORDS, INQUIRY_CELL_SPLIT_RE, INQUIRY_HEADER_WORDS, INQUIRY_LAYOUTS,
    INQUIRY_PLACEHOLDER_CREDITORS, INQUIRY_SECTION_RULES, find_sections,
)

logger = logging.getLogger(__name__)


def _is_placeholder_creditor(creditor: Optional[str]) -> bool:
    if not creditor or len(creditor) < 2:
        return True
    upper = creditor.upper()
    return upper in INQUIRY_PLACEHOLDER_CREDITORS or upper in INQUIRY_HEADER_WORDS


class InquiryExtractor:
    """Extracts Inquiry records from the inquiry sections of a report."""

    def extract(self, text: str, bureaus: BureausPresent) -> List[Inquiry]:
        inquiries: List[Inquiry] = []
        for section in self._candidate_sections(text):
            section_bureau = self._section_bureau(section, bureaus)
            for line, inquiry_date, creditor in self._rows(section):
                inquiries.append(Inquiry(
                    inquiry_date=inquiry_date,
                    creditor=creditor,
                    bureau=detect_bureau_in_block(line) or section_bureau,
                ))

        logger.info(f"Extracted {len(inquiries)} inquiries")
        return inquiries

    def _candidate_sections(self, text: str) -> List[str]:
        sections = find_sections(INQUIRY_SECTION_RULES, text)
        if sections:
            return sections

        # No header matched: keep keyword-bearing blocks of the whole text
        keyword_blocks = [block for block in split_blocks(text) if contains_any(block, INQUIRY_BLOCK_KEYWORDS)]
        logger.debug(f"No inquiry section header; {len(keyword_blocks)} keyword blocks")
        return keyword_blocks

    def _section_bureau(self, section: str, bureaus: BureausPresent) -> Optional[Bureau]:
        return attribute_bureau(section, bureaus)

    def _rows(self, section: str) -> List[Tuple[str, str, str]]:
        """(line, date, creditor) rows, one per readable line."""
        rows = []
        for line in section.splitlines():
            row = self._layout_row(line) or self._tabular_row(line)
            if row:
                rows.append(row)
        return rows

    def _layout_row(self, line: str) -> Optional[Tuple[str, str, str]]:
        for layout, pattern, date_group, creditor_group in INQUIRY_LAYOUTS:
            match = pattern.search(line)
            if not match:
                continue
            creditor = clean_text(match.group(creditor_group))
            if _is_placeholder_creditor(creditor):
                continue
            logger.debug(f"Inquiry layout {layout} matched {creditor!r}")
            return line, match.group(date_group).strip(), creditor
        return None

    def _tabular_row(self, line: str) -> Optional[Tuple[str, str, str]]:
        cells = [c.strip() for c in INQUIRY_CELL_SPLIT_RE.split(line.strip()) if c.strip()]
        if len(cells) != 2:
            return None
        first, second = cells
        if parse_date(second) and not parse_date(first):
            creditor, inquiry_date = first, second
        elif parse_date(first) and not parse_date(second):
            creditor, inquiry_date = second, first
        else:
            return None
        creditor = clean_text(creditor)
        if _is_placeholder_creditor(creditor):
            return None
        logger.debug(f"Inquiry layout tabular matched {creditor!r}")
        return line, inquiry_date, creditor


def extract_inquiries(text: str, bureaus: BureausPresent) -> List[Inquiry]:
    """Convenience function to run inquiry extraction."""
    return InquiryExtractor().extract(text, bureaus)
