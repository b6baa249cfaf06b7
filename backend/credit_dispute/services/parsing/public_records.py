"""
Credit Dispute Engine - Public Record Extractor

A block becomes a PublicRecord only when it names the record type and
carries at least one other field (date or status).
"""
from __future__ import annotations
import logging
from typing import List, Optional

from ...models.ssot import BureausPresent, PublicRecord
from .bureau_detector import attribute_bureau
from .helpers import contains_any, split_blocks
from .patterns import (
    PUBLIC_RECORD_BLOCK_EXCLUDE, PUBLIC_RECORD_BLOCK_KEYWORDS, PUBLIC_RECORD_BLOCK_MIN_LENGTH,
    PUBLIC_RECORD_EMPTY_RE, PUBLIC_RECORD_FIELD_RULES, PUBLIC_RECORD_SECTION_RULES, find_sections,
    match_fields,
)

logger = logging.getLogger(__name__)


class PublicRecordExtractor:
    """Extracts bankruptcies, liens and judgments from public record sections."""

    def extract(self, text: str, bureaus: BureausPresent) -> List[PublicRecord]:
        records = []
        for block in self._candidate_blocks(text):
            record = self._parse_block(block, bureaus)
            if record:
                records.append(record)

        logger.info(f"Extracted {len(records)} public records")
        return records

    def _candidate_blocks(self, text: str) -> List[str]:
        sections = find_sections(PUBLIC_RECORD_SECTION_RULES, text)
        if sections:
            blocks = []
            for section in sections:
                blocks.extend(split_blocks(section, PUBLIC_RECORD_BLOCK_MIN_LENGTH))
            return blocks

        keyword_blocks = [
            block for block in split_blocks(text, PUBLIC_RECORD_BLOCK_MIN_LENGTH)
            if contains_any(block, PUBLIC_RECORD_BLOCK_KEYWORDS)
            and not contains_any(block, PUBLIC_RECORD_BLOCK_EXCLUDE)
        ]
        logger.debug(f"No public record section header; {len(keyword_blocks)} keyword blocks")
        return keyword_blocks

    def _parse_block(self, block: str, bureaus: BureausPresent) -> Optional[PublicRecord]:
        if PUBLIC_RECORD_EMPTY_RE.search(block):
            return None

        fields = match_fields(PUBLIC_RECORD_FIELD_RULES, block)
        if "record_type" not in fields or len(fields) < 2:
            logger.debug(f"Skipping public record block with fields {sorted(fields)}")
            return None

        return PublicRecord(
            record_type=fields["record_type"],
            bureau=attribute_bureau(block, bureaus),
            date_reported=fields.get("date_reported"),
            status=fields.get("status"),
        )


def extract_public_records(text: str, bureaus: BureausPresent) -> List[PublicRecord]:
    """Convenience function to run public record extraction."""
    return PublicRecordExtractor().extract(text, bureaus)
