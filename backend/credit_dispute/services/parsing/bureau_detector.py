"""
Credit Dispute Engine - Bureau Detector

Determines which of the three bureaus a report mentions and which one it
was issued by. A primary bureau is only ever chosen among bureaus that are
present; none is invented when the text gives no signal.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from ...models.ssot import Bureau, BureausPresent

logger = logging.getLogger(__name__)


# =============================================================================
# PATTERN FAMILIES
# =============================================================================

# Abbreviations are matched case-sensitively and only beside a bureau context word
_ABBREVIATION_CONTEXT = r"\b(?i:bureau|source|reported\s+by|agency|credit\s+report|report|score|file|data)\b"


def _abbreviation_pattern(*abbreviations: str) -> Pattern:
    names = r"\b(?:" + "|".join(abbreviations) + r")\b"
    gap = r"[ \t]*[:\-]?[ \t]*"
    return re.compile(_ABBREVIATION_CONTEXT + gap + names + "|" + names + gap + _ABBREVIATION_CONTEXT)


BUREAU_PATTERNS: Dict[Bureau, List[Pattern]] = {
    Bureau.EXPERIAN: [
        re.compile(r"experian", re.IGNORECASE),
        re.compile(r"experian\.com", re.IGNORECASE),
        re.compile(r"national\s+consumer\s+assistance\s+center", re.IGNORECASE),
        _abbreviation_pattern("EXP", "XPN"),
    ],
    Bureau.EQUIFAX: [
        re.compile(r"equifax", re.IGNORECASE),
        re.compile(r"equifax\.com", re.IGNORECASE),
        _abbreviation_pattern("EFX", "EQF"),
    ],
    Bureau.TRANSUNION: [
        re.compile(r"trans\s*union", re.IGNORECASE),
        re.compile(r"transunion\.com", re.IGNORECASE),
        _abbreviation_pattern("TU", "TUC"),
    ],
}

# Patterns that only count toward the keyword tally (domains overlap the name patterns)
_COUNT_PATTERNS: Dict[Bureau, List[Pattern]] = {
    bureau: [p for p in patterns if r"\.com" not in p.pattern]
    for bureau, patterns in BUREAU_PATTERNS.items()
}

REPORT_HEADER_PHRASES: List[Tuple[Bureau, Pattern]] = [
    (Bureau.TRANSUNION, re.compile(r"trans\s*union\s+(?:personal\s+)?credit\s+report", re.IGNORECASE)),
    (Bureau.EQUIFAX, re.compile(r"equifax\s+information\s+services", re.IGNORECASE)),
    (Bureau.EQUIFAX, re.compile(r"equifax\s+credit\s+report", re.IGNORECASE)),
    (Bureau.EXPERIAN, re.compile(r"national\s+consumer\s+assistance\s+center", re.IGNORECASE)),
    (Bureau.EXPERIAN, re.compile(r"experian\s+credit\s+report", re.IGNORECASE)),
]

# Free-text spellings -> Bureau
_BUREAU_ALIASES: Dict[str, Bureau] = {
    "experian": Bureau.EXPERIAN,
    "exp": Bureau.EXPERIAN,
    "xpn": Bureau.EXPERIAN,
    "equifax": Bureau.EQUIFAX,
    "efx": Bureau.EQUIFAX,
    "eqf": Bureau.EQUIFAX,
    "transunion": Bureau.TRANSUNION,
    "tu": Bureau.TRANSUNION,
    "tuc": Bureau.TRANSUNION,
    "equifaxinformationservices": Bureau.EQUIFAX,
    "experianinformationsolutions": Bureau.EXPERIAN,
    "transunionconsumersolutions": Bureau.TRANSUNION,
}


def normalize_bureau_name(name: Optional[str]) -> Optional[Bureau]:
    """Map any spelling ("Trans Union", "TU", "EXPERIAN") to a Bureau, or None."""
    if not name:
        return None
    if isinstance(name, Bureau):
        return name
    key = re.sub(r"[^a-z]", "", name.lower())
    for suffix in ("com", "llc", "inc"):
        if key.endswith(suffix) and key[:-len(suffix)] in _BUREAU_ALIASES:
            key = key[:-len(suffix)]
    return _BUREAU_ALIASES.get(key)


@dataclass
class BureauDetection:
    bureaus_present: BureausPresent
    primary_bureau: Optional[Bureau]
    counts: Dict[Bureau, int]


# =============================================================================
# DETECTOR
# =============================================================================

class BureauDetector:
    """Runs the three pattern families and applies the primary-bureau policy."""

    def detect(self, text: str) -> BureauDetection:
        text = text or ""
        matched = {
            bureau: any(p.search(text) for p in patterns)
            for bureau, patterns in BUREAU_PATTERNS.items()
        }
        present = BureausPresent(
            experian=matched[Bureau.EXPERIAN],
            equifax=matched[Bureau.EQUIFAX],
            transunion=matched[Bureau.TRANSUNION],
        )
        counts = self._count_mentions(text)
        primary = self._select_primary(text, present, counts)

        logger.info(
            f"Detected bureaus: {[b.value for b in present.present()]}, "
            f"primary={primary.value if primary else None}"
        )
        return BureauDetection(bureaus_present=present, primary_bureau=primary, counts=counts)

    def _count_mentions(self, text: str) -> Dict[Bureau, int]:
        return {
            bureau: sum(len(p.findall(text)) for p in patterns)
            for bureau, patterns in _COUNT_PATTERNS.items()
        }

    def _select_primary(self, text: str, present: BureausPresent, counts: Dict[Bureau, int]) -> Optional[Bureau]:
        bureaus = present.present()

        # (a) exactly one family matched
        if len(bureaus) == 1:
            return bureaus[0]
        if not bureaus:
            return None

        # (b) report header phrase, earliest in the text wins
        header_hits = []
        for bureau, pattern in REPORT_HEADER_PHRASES:
            match = pattern.search(text)
            if match and present.is_present(bureau):
                header_hits.append((match.start(), bureau))
        if header_hits:
            return min(header_hits, key=lambda hit: hit[0])[1]

        # (c) strict maximum of raw mentions
        ranked = sorted(((counts.get(b, 0), b) for b in bureaus), key=lambda item: item[0], reverse=True)
        if ranked[0][0] > 0 and (len(ranked) == 1 or ranked[0][0] > ranked[1][0]):
            return ranked[0][1]

        # (d) no signal
        logger.debug("No primary bureau could be selected")
        return None


def detect_bureau_in_block(block: str) -> Optional[Bureau]:
    """Bureau explicitly named inside one block; the earliest mention wins."""
    earliest: Optional[Tuple[int, Bureau]] = None
    for bureau, patterns in BUREAU_PATTERNS.items():
        for pattern in patterns:
            match = pattern.search(block)
            if match and (earliest is None or match.start() < earliest[0]):
                earliest = (match.start(), bureau)
    return earliest[1] if earliest else None


def attribute_bureau(block: str, present: BureausPresent) -> Optional[Bureau]:
    """Explicit mention in the block, else the report's only bureau, else None."""
    explicit = detect_bureau_in_block(block)
    if explicit:
        return explicit
    bureaus = present.present()
    if len(bureaus) == 1:
        return bureaus[0]
    return None


def detect_bureaus(text: str) -> BureauDetection:
    """Convenience function to run bureau detection."""
    return BureauDetector().detect(text)
