"""
Credit Dispute Engine - Issue Classifier

Main orchestrator that runs all issue rules against a ReportModel.
Every emitted Issue carries its legal citations. Issues are attached to the
report through ReportModel.with_issues(); the report itself is not mutated.
"""
from __future__ import annotations
import logging
from datetime import date
from typing import List, Optional

from ...models.ssot import Account, Bureau, Issue, ReportModel, Severity
from ..legal.citations import LegalReferenceResolver
from .rules import (
    AccountRules, DuplicateRules, PersonalInfoRules, TemporalRules,
    account_review_issue, representative_account,
)

logger = logging.getLogger(__name__)


class IssueClassifier:
    """
    Runs all issue rules against a ReportModel.

    Rules are independent; their order only affects the order of the
    returned list. `as_of` fixes the evaluation date for temporal rules.
    """

    def __init__(self, resolver: Optional[LegalReferenceResolver] = None, as_of: Optional[date] = None):
        self.resolver = resolver or LegalReferenceResolver()
        self.as_of = as_of
        self.personal_info_rules = PersonalInfoRules()
        self.account_rules = AccountRules()
        self.duplicate_rules = DuplicateRules()
        self.temporal_rules = TemporalRules()

    def classify(self, report: ReportModel) -> List[Issue]:
        as_of = self.as_of or date.today()
        primary = report.primary_bureau
        logger.info(f"Starting classification of report {report.report_id} (as of {as_of.isoformat()})")

        issues: List[Issue] = []
        issues.extend(self.personal_info_rules.check_multi_value_fields(report.personal_info, primary))

        for account in report.accounts:
            bureau = self._bureau_for(account, primary)
            issues.extend(self.account_rules.check_negative_status(account, bureau))
            issues.extend(self.account_rules.check_missing_dates(account, bureau))
            issues.extend(self.temporal_rules.check_stale_bankruptcy_account(account, bureau, as_of))

        issues.extend(self.duplicate_rules.check_duplicate_student_loans(report.accounts, primary))

        for record in report.public_records:
            issues.extend(self.temporal_rules.check_stale_bankruptcy_record(record, record.bureau or primary, as_of))

        for inquiry in report.inquiries:
            issues.extend(self.temporal_rules.check_stale_inquiry(inquiry, inquiry.bureau or primary, as_of))

        if not issues:
            account = representative_account(report.accounts)
            if account is not None:
                logger.debug(f"No issues found; falling back to account review of {account.account_name}")
                issues.append(account_review_issue(account, self._bureau_for(account, primary)))

        issues = [self.resolver.attach(issue) for issue in issues]

        logger.info(
            f"Classification complete: {len(issues)} issues "
            f"({sum(1 for i in issues if i.severity == Severity.HIGH)} high)"
        )
        return issues

    @staticmethod
    def _bureau_for(account: Account, primary: Optional[Bureau]) -> Optional[Bureau]:
        return account.bureau or primary


def classify_report(report: ReportModel, as_of: Optional[date] = None) -> ReportModel:
    """
    Factory function to classify a ReportModel.

    Returns a copy of the report with its issues populated.
    """
    classifier = IssueClassifier(as_of=as_of)
    return report.with_issues(classifier.classify(report))
