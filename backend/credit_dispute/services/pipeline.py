"""
Credit Dispute Engine - Pipeline

Wires the stages together:

    raw upload -> TextSalvage -> ReportParser -> IssueClassifier
    ReportModel (+ issues) -> LetterComposer -> Letter[]

The only error raised here is EmptyReportError, for uploads that are empty
or from which no text can be salvaged.
"""
from __future__ import annotations
import logging
import os
from datetime import date
from typing import List, Optional, Sequence, Union

from ..models.ssot import Issue, Letter, ReportModel
from .audit.engine import IssueClassifier
from .errors import EmptyReportError
from .letter_generator.composer import LetterComposer, generate_letters as compose_letters
from .letter_generator.resolver import LetterTemplateResolver
from .parsing.report_parser import ReportParser
from .parsing.salvage import TextSalvage

logger = logging.getLogger(__name__)


_EXTENSION_HINTS = {
    ".pdf": "pdf",
    ".html": "html",
    ".htm": "html",
    ".xhtml": "html",
    ".txt": "text",
}


def infer_format_hint(
    format_hint: Optional[str] = None,
    filename: Optional[str] = None,
    mimetype: Optional[str] = None,
) -> str:
    """Explicit hint, else MIME type, else file extension, else 'text'."""
    if format_hint:
        return format_hint.lower()
    if mimetype:
        mimetype = mimetype.lower()
        if "pdf" in mimetype:
            return "pdf"
        if "html" in mimetype:
            return "html"
    if filename:
        extension = os.path.splitext(filename)[1].lower()
        if extension in _EXTENSION_HINTS:
            return _EXTENSION_HINTS[extension]
    return "text"


def analyze_report(
    data: Union[bytes, str, None],
    format_hint: Optional[str] = None,
    filename: Optional[str] = None,
    mimetype: Optional[str] = None,
    as_of: Optional[date] = None,
    allow_sample_data: Optional[bool] = None,
) -> ReportModel:
    """
    Salvage, parse and classify an upload.

    Returns the ReportModel with its issues attached.
    Raises EmptyReportError when the upload is empty or unreadable.
    """
    if not data or not data.strip():
        raise EmptyReportError("The uploaded report is empty")

    hint = infer_format_hint(format_hint, filename, mimetype)
    logger.info(f"Analyzing report {filename or '<inline>'} ({hint}, {len(data)} bytes)")

    salvaged = TextSalvage(allow_sample_data=allow_sample_data).salvage(data, hint)
    if not salvaged.text.strip():
        raise EmptyReportError("No readable text could be recovered from the uploaded report")

    report = ReportParser().parse(
        salvaged.text,
        format_hint=hint,
        source_file=filename,
        is_sample_data=salvaged.is_sample_data,
    )
    issues = IssueClassifier(as_of=as_of).classify(report)
    logger.info(f"Report {report.report_id}: {len(report.accounts)} accounts, {len(issues)} issues")
    return report.with_issues(issues)


def generate_letters(
    report: ReportModel,
    issues: Optional[Sequence[Issue]] = None,
    resolver: Optional[LetterTemplateResolver] = None,
    as_of: Optional[date] = None,
) -> List[Letter]:
    """Compose dispute letters for a report's issues (or the given ones)."""
    composer = LetterComposer(resolver=resolver, as_of=as_of)
    return compose_letters(report, issues=issues, composer=composer)
