"""
Credit Dispute Engine - Letters API Router

Generates dispute letters for a stored analysis or for report text sent
inline, and persists the generated letters.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.db_models import LetterDB, ReportDB
from ..models.ssot import (
    Account, AccountRef, AccountSource, AccountStatus, Bureau, BureausPresent, Inquiry, Issue,
    IssueType, LegalCitation, PersonalInfo, PublicRecord, ReportModel, Severity,
)
from ..services.errors import ReportInputError
from ..services.pipeline import analyze_report, generate_letters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/letters", tags=["letters"])


# =============================================================================
# PYDANTIC MODELS FOR API
# =============================================================================

class LetterRequest(BaseModel):
    report_id: Optional[str] = None  # Stored analysis from /reports/analyze
    report_text: Optional[str] = None  # Or raw report text, analyzed on the fly
    issue_ids: Optional[List[str]] = None  # Restrict letters to these issues


class LetterResponse(BaseModel):
    letter_id: str
    report_id: Optional[str] = None
    title: str
    content: str
    bureau: str
    account_name: Optional[str] = None
    account_number: Optional[str] = None
    error_type: str
    status: str
    resolution: str
    template_name: Optional[str] = None
    issue_ids: List[str] = []
    created_at: str


class GenerateResponse(BaseModel):
    report_id: Optional[str] = None
    total_letters: int
    letters: List[LetterResponse]


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _bureau(value: Optional[str]) -> Optional[Bureau]:
    try:
        return Bureau(value) if value else None
    except ValueError:
        return None


def _account_ref(data: Optional[Dict[str, Any]]) -> Optional[AccountRef]:
    if not data or not data.get("account_name"):
        return None
    return AccountRef(account_name=data["account_name"], account_number=data.get("account_number"))


def reconstruct_issues(issues_data: list) -> List[Issue]:
    """Reconstruct Issue objects from stored JSON data."""
    issues = []
    for i in issues_data or []:
        try:
            issues.append(Issue(
                issue_id=i["issue_id"],
                type=IssueType(i["type"]),
                title=i.get("title", ""),
                description=i.get("description", ""),
                severity=Severity(i.get("severity", "medium")),
                account=_account_ref(i.get("account")),
                bureau=_bureau(i.get("bureau")),
                legal_citations=tuple(LegalCitation(**c) for c in i.get("legal_citations", [])),
                related_accounts=tuple(
                    ref for ref in (_account_ref(r) for r in i.get("related_accounts", [])) if ref
                ),
                details=i.get("details") or {},
            ))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Could not reconstruct issue: {e}")
    return issues


def reconstruct_accounts(accounts_data: list) -> List[Account]:
    """Reconstruct Account objects from stored JSON data."""
    accounts = []
    for a in accounts_data or []:
        try:
            accounts.append(Account(
                account_id=a["account_id"],
                account_name=a["account_name"],
                account_number=a.get("account_number"),
                account_type=a.get("account_type"),
                balance=a.get("balance"),
                credit_limit=a.get("credit_limit"),
                payment_status=a.get("payment_status"),
                status=AccountStatus(a.get("status", "unknown")),
                date_opened=a.get("date_opened"),
                date_reported=a.get("date_reported"),
                last_activity=a.get("last_activity"),
                is_negative=bool(a.get("is_negative")),
                bureau=_bureau(a.get("bureau")),
                remarks=list(a.get("remarks") or []),
                source=AccountSource(a.get("source", "structured")),
            ))
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Could not reconstruct account: {e}")
    return accounts


def reconstruct_report(data: Dict[str, Any]) -> ReportModel:
    """Rebuild the parts of a ReportModel that letter composition reads."""
    info = data.get("personal_info") or {}
    present = data.get("bureaus_present") or {}
    return ReportModel(
        report_id=data["report_id"],
        bureaus_present=BureausPresent(
            experian=bool(present.get("experian")),
            equifax=bool(present.get("equifax")),
            transunion=bool(present.get("transunion")),
        ),
        primary_bureau=_bureau(data.get("primary_bureau")),
        personal_info=PersonalInfo(
            name=info.get("name"),
            address=info.get("address"),
            city=info.get("city"),
            state=info.get("state"),
            zip_code=info.get("zip_code"),
            previous_addresses=list(info.get("previous_addresses") or []),
            employers=list(info.get("employers") or []),
            aliases=list(info.get("aliases") or []),
        ),
        accounts=reconstruct_accounts(data.get("accounts")),
        inquiries=[
            Inquiry(inquiry_date=i.get("inquiry_date"), creditor=i.get("creditor", ""), bureau=_bureau(i.get("bureau")))
            for i in data.get("inquiries") or []
        ],
        public_records=[
            PublicRecord(
                record_type=r.get("record_type"), bureau=_bureau(r.get("bureau")),
                date_reported=r.get("date_reported"), status=r.get("status"),
            )
            for r in data.get("public_records") or []
        ],
        raw_text=data.get("raw_text", ""),
        issues=reconstruct_issues(data.get("issues")),
        report_number=data.get("report_number"),
        source_file=data.get("source_file"),
        format_hint=data.get("format_hint", "text"),
        is_sample_data=bool(data.get("is_sample_data")),
    )


def letter_response(letter: Dict[str, Any], report_id: Optional[str]) -> LetterResponse:
    return LetterResponse(report_id=report_id, **letter)


def _db_letter_response(letter: LetterDB) -> LetterResponse:
    return LetterResponse(
        letter_id=letter.id,
        report_id=letter.report_id,
        title=letter.title,
        content=letter.content,
        bureau=letter.bureau,
        account_name=letter.account_name,
        account_number=letter.account_number,
        error_type=letter.error_type or "general",
        status=letter.status or "draft",
        resolution=letter.resolution or "structural",
        template_name=letter.template_name,
        issue_ids=letter.issue_ids or [],
        created_at=letter.created_at.isoformat() if letter.created_at else "",
    )


# =============================================================================
# API ENDPOINTS
# =============================================================================

@router.post("/generate", response_model=GenerateResponse)
def generate_dispute_letters(
    request: LetterRequest,
    db: Session = Depends(get_db)
):
    """
    Generate dispute letters.

    Pipeline:
    1. Load the stored analysis (report_id) or analyze report_text
    2. Select and group issues by bureau and type
    3. Compose one letter per group
    """
    report_id = request.report_id

    if report_id:
        db_report = db.query(ReportDB).filter(ReportDB.id == report_id).first()
        if not db_report:
            raise HTTPException(status_code=404, detail="Report not found")
        report = reconstruct_report(db_report.report_json)
    elif request.report_text:
        try:
            report = analyze_report(request.report_text, format_hint="text")
        except ReportInputError as e:
            raise HTTPException(status_code=400, detail=str(e))
    else:
        raise HTTPException(status_code=400, detail="Either report_id or report_text is required")

    issues = report.issues
    if request.issue_ids is not None:
        wanted = set(request.issue_ids)
        issues = [i for i in report.issues if i.issue_id in wanted]

    letters = generate_letters(report, issues=issues)

    for letter in letters:
        db.add(LetterDB(
            id=letter.letter_id,
            report_id=report_id,
            title=letter.title,
            content=letter.content,
            bureau=letter.bureau,
            error_type=letter.error_type,
            status=letter.status.value,
            resolution=letter.resolution.value,
            template_name=letter.template_name,
            account_name=letter.account_name,
            account_number=letter.account_number,
            issue_ids=list(letter.issue_ids),
            created_at=letter.created_at,
        ))
    db.commit()
    logger.info(f"Saved {len(letters)} letters for report {report_id or '<inline>'}")

    return GenerateResponse(
        report_id=report_id,
        total_letters=len(letters),
        letters=[letter_response(letter.to_dict(), report_id) for letter in letters],
    )


@router.get("", response_model=List[LetterResponse])
async def list_letters(
    report_id: Optional[str] = Query(None),
    db: Session = Depends(get_db)
):
    """List generated letters, optionally for one report."""
    query = db.query(LetterDB)
    if report_id:
        query = query.filter(LetterDB.report_id == report_id)
    return [_db_letter_response(letter) for letter in query.order_by(LetterDB.created_at.desc()).all()]


@router.get("/{letter_id}", response_model=LetterResponse)
async def get_letter(letter_id: str, db: Session = Depends(get_db)):
    letter = db.query(LetterDB).filter(LetterDB.id == letter_id).first()
    if not letter:
        raise HTTPException(status_code=404, detail="Letter not found")
    return _db_letter_response(letter)


@router.delete("/{letter_id}")
async def delete_letter(letter_id: str, db: Session = Depends(get_db)):
    letter = db.query(LetterDB).filter(LetterDB.id == letter_id).first()
    if not letter:
        raise HTTPException(status_code=404, detail="Letter not found")
    db.delete(letter)
    db.commit()
    return {"status": "deleted", "letter_id": letter_id}
