"""
Credit Dispute Engine - Report Assembler

Pure merge of the four extractor outputs and the bureau detection into a
ReportModel (SSOT #1), plus summary statistics. No I/O.
"""
from __future__ import annotations
import logging
from collections import Counter
from typing import List, Optional

from ...models.ssot import (
    Account, AccountStatus, Inquiry, PersonalInfo, PublicRecord, ReportModel, ReportSummary,
)
from .bureau_detector import BureauDetection
from .helpers import is_revolving

logger = logging.getLogger(__name__)


def compute_summary(
    accounts: List[Account],
    inquiries: List[Inquiry],
    public_records: List[PublicRecord],
) -> ReportSummary:
    """
    Counts, type histogram and utilization.

    Utilization is sum(balance) / sum(limit) over non-closed revolving
    accounts with a positive limit; None when that limit total is zero.
    """
    type_counts = Counter((a.account_type or "Unknown") for a in accounts)

    revolving = [
        a for a in accounts
        if a.status != AccountStatus.CLOSED and is_revolving(a.account_type)
        and a.credit_limit and a.credit_limit > 0
    ]
    revolving_balance = sum(a.balance or 0.0 for a in revolving)
    revolving_limit = sum(a.credit_limit or 0.0 for a in revolving)
    utilization = round(revolving_balance / revolving_limit, 4) if revolving_limit > 0 else None

    return ReportSummary(
        total_accounts=len(accounts),
        open_accounts=sum(1 for a in accounts if a.status == AccountStatus.OPEN),
        closed_accounts=sum(1 for a in accounts if a.status == AccountStatus.CLOSED),
        negative_accounts=sum(1 for a in accounts if a.is_negative),
        total_inquiries=len(inquiries),
        total_public_records=len(public_records),
        account_types=dict(type_counts),
        total_balance=round(sum(a.balance or 0.0 for a in accounts), 2),
        total_credit_limit=round(sum(a.credit_limit or 0.0 for a in accounts), 2),
        utilization=utilization,
    )


class ReportAssembler:
    """Builds the ReportModel. Deterministic given identical inputs."""

    def assemble(
        self,
        raw_text: str,
        detection: BureauDetection,
        personal_info: Optional[PersonalInfo],
        accounts: Optional[List[Account]],
        inquiries: Optional[List[Inquiry]],
        public_records: Optional[List[PublicRecord]],
        report_number: Optional[str] = None,
        source_file: Optional[str] = None,
        format_hint: str = "text",
        is_sample_data: bool = False,
    ) -> ReportModel:
        accounts = list(accounts or [])
        inquiries = list(inquiries or [])
        public_records = list(public_records or [])

        primary = detection.primary_bureau
        if primary is not None and not detection.bureaus_present.is_present(primary):
            logger.warning(f"Primary bureau {primary.value} not present - clearing")
            primary = None

        report = ReportModel(
            bureaus_present=detection.bureaus_present,
            primary_bureau=primary,
            personal_info=personal_info or PersonalInfo(),
            accounts=accounts,
            inquiries=inquiries,
            public_records=public_records,
            raw_text=raw_text or "",
            summary=compute_summary(accounts, inquiries, public_records),
            report_number=report_number,
            source_file=source_file,
            format_hint=format_hint,
            is_sample_data=is_sample_data,
        )
        logger.info(
            f"Assembled report {report.report_id}: {len(accounts)} accounts, "
            f"{len(inquiries)} inquiries, {len(public_records)} public records"
        )
        return report
