"""
Credit Dispute Engine - Reports API Router

Handles report upload, text salvage, parsing and issue classification,
with the analyzed report persisted for later letter generation.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import ReportDB
from ..services.errors import ReportInputError
from ..services.pipeline import analyze_report

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class CitationResponse(BaseModel):
    law: str
    section: str
    citation_text: str


class IssueResponse(BaseModel):
    issue_id: str
    type: str
    title: str
    description: str
    severity: str
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    bureau: Optional[str] = None
    legal_citations: List[CitationResponse] = []
    related_accounts: List[Dict[str, Optional[str]]] = []


class AnalyzeResponse(BaseModel):
    report_id: str
    message: str
    source_file: Optional[str] = None
    primary_bureau: Optional[str] = None
    bureaus_present: Dict[str, bool]
    is_sample_data: bool = False
    total_accounts: int
    total_issues: int
    issues: List[IssueResponse]
    report: Dict[str, Any]


class ReportListItem(BaseModel):
    report_id: str
    filename: Optional[str] = None
    primary_bureau: Optional[str] = None
    issues: int
    uploaded: str


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def issue_response(issue: Dict[str, Any]) -> IssueResponse:
    """Flatten a serialized Issue for the API."""
    account = issue.get("account") or {}
    return IssueResponse(
        issue_id=issue["issue_id"],
        type=issue["type"],
        title=issue["title"],
        description=issue["description"],
        severity=issue["severity"],
        account_name=account.get("account_name"),
        account_number=account.get("account_number"),
        bureau=issue.get("bureau"),
        legal_citations=[CitationResponse(**c) for c in issue.get("legal_citations", [])],
        related_accounts=issue.get("related_accounts", []),
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_upload(
    file: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """
    Upload a credit report (PDF, HTML or text) and analyze it.

    Returns the structured report and its disputable issues.
    """
    data = await file.read()

    try:
        report = analyze_report(data, filename=file.filename, mimetype=file.content_type)
    except ReportInputError as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    serialized = report.to_dict(include_raw_text=True)

    db_report = ReportDB(
        id=report.report_id,
        filename=file.filename,
        primary_bureau=serialized["primary_bureau"],
        is_sample_data=report.is_sample_data,
        report_json=serialized,
        issue_count=len(report.issues),
    )
    db.add(db_report)
    db.commit()
    logger.info(f"Report saved: {report.report_id} ({len(report.issues)} issues)")

    serialized.pop("raw_text", None)
    return AnalyzeResponse(
        report_id=report.report_id,
        message="Report analyzed successfully",
        source_file=file.filename,
        primary_bureau=serialized["primary_bureau"],
        bureaus_present=serialized["bureaus_present"],
        is_sample_data=report.is_sample_data,
        total_accounts=len(report.accounts),
        total_issues=len(report.issues),
        issues=[issue_response(i) for i in serialized["issues"]],
        report=serialized,
    )


@router.get("", response_model=List[ReportListItem])
async def list_reports(db: Session = Depends(get_db)):
    """List analyzed reports, newest first."""
    reports = db.query(ReportDB).order_by(ReportDB.created_at.desc()).all()
    return [
        ReportListItem(
            report_id=r.id,
            filename=r.filename,
            primary_bureau=r.primary_bureau,
            issues=r.issue_count or 0,
            uploaded=r.created_at.isoformat() if r.created_at else "",
        )
        for r in reports
    ]


@router.get("/{report_id}")
async def get_report(report_id: str, db: Session = Depends(get_db)):
    """Stored analysis for a report (without the raw text)."""
    report = db.query(ReportDB).filter(ReportDB.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    data = dict(report.report_json or {})
    data.pop("raw_text", None)
    return data


@router.delete("/{report_id}")
async def delete_report(report_id: str, db: Session = Depends(get_db)):
    """Delete a report and its letters."""
    report = db.query(ReportDB).filter(ReportDB.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    db.delete(report)
    db.commit()
    return {"status": "deleted", "report_id": report_id}
