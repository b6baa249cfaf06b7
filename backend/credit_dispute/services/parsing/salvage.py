"""
Credit Dispute Engine - Text Salvage

Best-effort recovery of readable text from an upload. Stages are tried in
order and the first one that yields enough readable text wins:

1. Structured PDF text (pdfplumber, page by page)
2. Rendered markup (BeautifulSoup visible text)
3. Control-structure stripping of the decoded bytes
4. Keyword windows around credit-report vocabulary

No stage raises. The worst case is an empty string.
"""
from __future__ import annotations
import io
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

import pdfplumber
from bs4 import BeautifulSoup

from ...config import get_settings
from .sample_data import SAMPLE_REPORT_TEXT

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

MIN_SALVAGE_CHARS = 20

# Fraction of non-whitespace characters that must be letters or digits
MIN_READABLE_RATIO = 0.5

KEYWORD_WINDOW = 150

SALVAGE_KEYWORDS = [
    "EXPERIAN", "EQUIFAX", "TRANSUNION", "TRANS UNION",
    "ACCOUNT", "INQUIRIES", "INQUIRY", "BALANCE", "CREDITOR", "PAYMENT",
    "STATUS", "DATE OPENED", "PUBLIC RECORD", "COLLECTION", "BANKRUPTCY",
    "CREDIT LIMIT", "PERSONAL INFORMATION", "ADDRESS",
]

_KEYWORD_RE = re.compile("|".join(re.escape(k) for k in SALVAGE_KEYWORDS), re.IGNORECASE)

_MARKUP_HINT_RE = re.compile(r"<\s*(?:html|body|div|p|table|tr|td|span|br|head)\b", re.IGNORECASE)

_BLOCK_TAGS = [
    "p", "div", "br", "tr", "li", "ul", "ol", "table", "section", "article",
    "header", "footer", "h1", "h2", "h3", "h4", "h5", "h6", "hr", "dt", "dd",
]
_BREAK_TAGS = ["table", "section", "article", "h1", "h2", "h3", "h4", "h5", "h6", "hr"]

_PDF_HEADER_RE = re.compile(r"%PDF-\d\.\d")
_STREAM_RE = re.compile(r"stream\b.*?\bendstream", re.DOTALL)
_DICT_RE = re.compile(r"<<.*?>>", re.DOTALL)
_TAG_RE = re.compile(r"<[^<>]{1,500}>")
_PDF_KEYWORDS_RE = re.compile(r"\b(?:\d+\s+\d+\s+obj|endobj|xref|trailer|startxref|%%EOF)\b")
_TJ_RE = re.compile(r"\(((?:\\.|[^\\)])*)\)\s*Tj")
_TJ_ARRAY_RE = re.compile(r"\[([^\]]*)\]\s*TJ")
_TJ_ARRAY_PART_RE = re.compile(r"\(((?:\\.|[^\\)])*)\)")
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E\n\t]")


@dataclass
class SalvageResult:
    text: str
    stage: str
    is_sample_data: bool = False


# =============================================================================
# HELPERS
# =============================================================================

def _decode(data: Union[bytes, str]) -> Tuple[str, bool]:
    """Decoded text plus whether the decode was lossy (not valid UTF-8)."""
    if isinstance(data, str):
        return data, False
    try:
        return data.decode("utf-8"), False
    except UnicodeDecodeError:
        return data.decode("latin-1"), True


def _keep_printable(text: str, ascii_only: bool) -> str:
    if ascii_only:
        return _NON_PRINTABLE_RE.sub(" ", text)
    return "".join(ch if ch.isprintable() or ch in "\n\t" else " " for ch in text)


def _normalize_whitespace(text: str) -> str:
    lines = [line.strip() for line in text.replace("\r\n", "\n").replace("\r", "\n").split("\n")]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def _is_readable(text: str) -> bool:
    visible = re.sub(r"\s", "", text)
    if len(visible) < MIN_SALVAGE_CHARS:
        return False
    alnum = sum(1 for ch in visible if ch.isascii() and ch.isalnum())
    return alnum / len(visible) >= MIN_READABLE_RATIO


def _unescape_pdf_string(value: str) -> str:
    value = re.sub(r"\\([nrt])", lambda m: {"n": "\n", "r": "\n", "t": "\t"}[m.group(1)], value)
    value = re.sub(r"\\([0-7]{1,3})", lambda m: chr(int(m.group(1), 8)), value)
    return re.sub(r"\\(.)", r"\1", value)


def _merge_windows(spans: List[Tuple[int, int]]) -> List[Tuple[int, int]]:
    merged: List[Tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


# =============================================================================
# TEXT SALVAGE
# =============================================================================

class TextSalvage:
    """
    Layered text recovery.

    allow_sample_data: when True and nothing can be salvaged, the bundled
    synthetic report is returned and flagged. Defaults to ALLOW_SAMPLE_DATA.
    """

    def __init__(self, allow_sample_data: Optional[bool] = None, max_pages: Optional[int] = None):
        settings = get_settings()
        self.allow_sample_data = settings.allow_sample_data if allow_sample_data is None else allow_sample_data
        self.max_pages = settings.salvage_max_pages if max_pages is None else max_pages

    def salvage(self, data: Union[bytes, str, None], format_hint: str = "text") -> SalvageResult:
        """Recover text from raw upload content. Never raises."""
        format_hint = (format_hint or "text").lower()

        if data:
            stages = [
                ("pdf_text", self._from_pdf),
                ("rendered_markup", self._from_markup),
                ("stripped", self._from_stripped),
                ("keyword_windows", self._from_keyword_windows),
            ]
            for stage, method in stages:
                text = method(data, format_hint)
                # Keyword windows are kept even when surrounded by noise
                readable = len(text.strip()) >= MIN_SALVAGE_CHARS if stage == "keyword_windows" else _is_readable(text)
                if text and readable:
                    logger.info(f"Salvaged {len(text)} chars via {stage}")
                    return SalvageResult(text=text, stage=stage)
                logger.debug(f"Salvage stage {stage} produced no readable text")

        if self.allow_sample_data:
            logger.warning("No text salvaged - using synthetic sample report")
            return SalvageResult(text=SAMPLE_REPORT_TEXT, stage="sample_data", is_sample_data=True)

        logger.warning("No readable text could be salvaged")
        return SalvageResult(text="", stage="none")

    # -------------------------------------------------------------------------
    # Stage 1: structured PDF text
    # -------------------------------------------------------------------------

    def _from_pdf(self, data: Union[bytes, str], format_hint: str) -> str:
        if not isinstance(data, bytes):
            return ""
        if format_hint != "pdf" and not data.lstrip().startswith(b"%PDF"):
            return ""

        parts: List[str] = []
        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                for page in pdf.pages[: self.max_pages]:
                    parts.append(page.extract_text() or "")
        except Exception as e:
            # Malformed PDFs fall through to the byte-level stages
            logger.debug(f"pdfplumber could not read upload: {e}")
        return _normalize_whitespace("\n\n".join(parts))

    # -------------------------------------------------------------------------
    # Stage 2: rendered markup
    # -------------------------------------------------------------------------

    def _from_markup(self, data: Union[bytes, str], format_hint: str) -> str:
        markup, _ = _decode(data)
        if format_hint != "html" and not _MARKUP_HINT_RE.search(markup[:5000]):
            return ""

        soup = BeautifulSoup(markup, "html.parser")
        for tag in soup(["script", "style", "noscript", "head"]):
            tag.decompose()
        for tag in soup.find_all(["td", "th"]):
            tag.insert_after("\t")
        for tag in soup.find_all(_BLOCK_TAGS):
            tag.insert_after("\n\n" if tag.name in _BREAK_TAGS else "\n")
        return _normalize_whitespace(soup.get_text())

    # -------------------------------------------------------------------------
    # Stage 3: control-structure stripping
    # -------------------------------------------------------------------------

    def _from_stripped(self, data: Union[bytes, str], format_hint: str) -> str:
        decoded, lossy = _decode(data)

        # Text-showing operators carry the visible strings of uncompressed PDFs
        operands = []
        for match in re.finditer(r"%s|%s" % (_TJ_RE.pattern, _TJ_ARRAY_RE.pattern), decoded):
            if match.group(1) is not None:
                operands.append(_unescape_pdf_string(match.group(1)))
            else:
                pieces = _TJ_ARRAY_PART_RE.findall(match.group(2))
                operands.append("".join(_unescape_pdf_string(p) for p in pieces))
        if operands:
            operand_text = _normalize_whitespace(_keep_printable("\n".join(operands), lossy))
            if _is_readable(operand_text):
                return operand_text

        stripped = _PDF_HEADER_RE.sub(" ", decoded)
        stripped = _STREAM_RE.sub(" ", stripped)
        stripped = _DICT_RE.sub(" ", stripped)
        stripped = _TAG_RE.sub(" ", stripped)
        stripped = _PDF_KEYWORDS_RE.sub(" ", stripped)
        stripped = _keep_printable(stripped, lossy)
        return _normalize_whitespace(stripped)

    # -------------------------------------------------------------------------
    # Stage 4: keyword windows
    # -------------------------------------------------------------------------

    def _from_keyword_windows(self, data: Union[bytes, str], format_hint: str) -> str:
        decoded, lossy = _decode(data)
        printable = _keep_printable(decoded, lossy)
        spans = [
            (max(0, m.start() - KEYWORD_WINDOW), min(len(printable), m.end() + KEYWORD_WINDOW))
            for m in _KEYWORD_RE.finditer(printable)
        ]
        if not spans:
            return ""
        windows = [printable[start:end] for start, end in _merge_windows(spans)]
        return _normalize_whitespace("\n\n".join(windows))


def salvage_text(data: Union[bytes, str, None], format_hint: str = "text",
                 allow_sample_data: Optional[bool] = None) -> SalvageResult:
    """Convenience function to run text salvage."""
    return TextSalvage(allow_sample_data=allow_sample_data).salvage(data, format_hint)
