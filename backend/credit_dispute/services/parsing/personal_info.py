"""
Credit Dispute Engine - Personal Information Extractor

Extracts the consumer identity block and flags comma-joined multi-value
name/address/employer fields. The flag is consumed later by the
personal-info anomaly rule.
"""
from __future__ import annotations
import logging
import re
from typing import Dict, List, Optional

from ...models.ssot import PersonalInfo
from .helpers import clean_text
from .patterns import (
    ADDRESS_WITH_LOCALITY_RE, CITY_STATE_ZIP_RE, EMPLOYER_SUFFIXES, NAME_FALSE_POSITIVES,
    PERSONAL_INFO_RULES, PERSONAL_LIST_RULES, PERSONAL_LIST_SECTIONS,
    match_all, rules_for,
)

logger = logging.getLogger(__name__)


# =============================================================================
# MULTI-VALUE DETECTION
# =============================================================================

def _comma_parts(value: Optional[str]) -> List[str]:
    if not value or "," not in value:
        return []
    return [p.strip() for p in value.split(",") if p.strip()]


def split_multi_value_name(value: Optional[str]) -> List[str]:
    """'JOHN DOE, JOHNNY DOE' -> both names. 'DOE, JOHN' is a single name."""
    parts = _comma_parts(value)
    full_names = [p for p in parts if len(p.split()) >= 2]
    return parts if len(parts) >= 2 and len(full_names) >= 2 else []


def split_multi_value_address(value: Optional[str]) -> List[str]:
    """Two or more comma-separated values that each start with a street number."""
    parts = _comma_parts(value)
    streets = [p for p in parts if re.match(r"^\d+\s+\w", p)]
    return streets if len(streets) >= 2 else []


def split_multi_value_employer(value: Optional[str]) -> List[str]:
    """'ACME INC, GLOBEX CORP' -> two employers. 'ACME, INC' is one."""
    parts = [p for p in _comma_parts(value) if p.upper() not in EMPLOYER_SUFFIXES]
    return parts if len(parts) >= 2 else []


# =============================================================================
# EXTRACTOR
# =============================================================================

class PersonalInfoExtractor:
    """Extracts PersonalInfo with ordered rules per field."""

    def extract(self, text: str) -> PersonalInfo:
        info = PersonalInfo()
        if not text:
            return info

        info.name = self._first_valid(text, "name", self._valid_name)
        info.address = self._first_valid(text, "address", lambda v: bool(re.match(r"^\d+", v)))
        info.city = self._first_valid(text, "city")
        info.state = self._first_valid(text, "state")
        info.zip_code = self._first_valid(text, "zip_code")
        info.ssn_last4 = self._first_valid(text, "ssn_last4")
        info.date_of_birth = self._first_valid(text, "date_of_birth")
        info.phone = self._first_valid(text, "phone")

        self._fill_locality(info, text)

        info.previous_addresses = self._list_values(text, "previous_addresses")
        info.employers = self._list_values(text, "employers")
        info.aliases = self._aliases(text)
        info.multi_value_fields = self._multi_value_fields(info)

        if info.multi_value_fields:
            logger.info(f"Multi-value personal fields: {sorted(info.multi_value_fields)}")
        logger.info(f"Extracted personal info (name found: {info.name is not None})")
        return info

    def _first_valid(self, text: str, field: str, validator=None) -> Optional[str]:
        for rule in rules_for(PERSONAL_INFO_RULES, field):
            for match in rule.pattern.finditer(text):
                value = clean_text(match.group(rule.group))
                if value and (validator is None or validator(value)):
                    return value
        return None

    def _valid_name(self, value: str) -> bool:
        lowered = value.lower()
        if len(value) <= 3 or any(bad in lowered for bad in NAME_FALSE_POSITIVES):
            return False
        return bool(re.search(r"[A-Za-z]{2,}", value))

    def _fill_locality(self, info: PersonalInfo, text: str) -> None:
        # "123 Main St, Springfield, IL 62701" on one line
        if info.address:
            match = ADDRESS_WITH_LOCALITY_RE.match(info.address)
            if match and not split_multi_value_address(info.address):
                info.address = match.group(1).strip()
                info.city = info.city or match.group(2).strip()
                info.state = info.state or match.group(3)
                info.zip_code = info.zip_code or match.group(4)

        if info.city and info.state and info.zip_code:
            return

        match = CITY_STATE_ZIP_RE.search(text)
        if match:
            info.city = info.city or match.group(1).strip()
            info.state = info.state or match.group(2)
            info.zip_code = info.zip_code or match.group(3)

    def _list_values(self, text: str, field: str) -> List[str]:
        values = match_all(PERSONAL_LIST_RULES, field, text)

        # Header line followed by one value per line, up to the next blank line
        header = PERSONAL_LIST_SECTIONS.get(field)
        if header:
            for match in header.finditer(text):
                body = text[match.end():].lstrip("\r\n")
                for line in body.splitlines():
                    value = clean_text(line)
                    if not value:
                        break
                    if field == "previous_addresses" and not re.match(r"^\d+", value):
                        continue
                    if value not in values:
                        values.append(value)
        return values

    def _aliases(self, text: str) -> List[str]:
        aliases: List[str] = []
        for raw in match_all(PERSONAL_LIST_RULES, "aliases", text):
            for alias in re.split(r"[;,]", raw):
                alias = clean_text(alias)
                if alias and self._valid_name(alias) and alias not in aliases:
                    aliases.append(alias)
        return aliases

    def _multi_value_fields(self, info: PersonalInfo) -> Dict[str, List[str]]:
        found: Dict[str, List[str]] = {}

        names = split_multi_value_name(info.name)
        if names:
            found["name"] = names

        addresses = split_multi_value_address(info.address)
        if addresses:
            found["address"] = addresses

        for employer in info.employers:
            employers = split_multi_value_employer(employer)
            if employers:
                found["employers"] = employers
                break

        return found


def extract_personal_info(text: str) -> PersonalInfo:
    """Convenience function to run personal info extraction."""
    return PersonalInfoExtractor().extract(text)
