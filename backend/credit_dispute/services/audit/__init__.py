"""Credit Dispute Engine - Issue Classification

This layer classifies a ReportModel into disputable Issues with citations.
"""
from .engine import IssueClassifier, classify_report
from .rules import (
    PersonalInfoRules,
    AccountRules,
    DuplicateRules,
    TemporalRules,
)

__all__ = [
    "IssueClassifier",
    "classify_report",
    "PersonalInfoRules",
    "AccountRules",
    "DuplicateRules",
    "TemporalRules",
]
