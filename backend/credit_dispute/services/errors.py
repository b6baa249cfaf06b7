"""
Credit Dispute Engine - Boundary Errors

Only irrecoverable input is an error. Extraction, classification and
composition degrade to fallbacks instead of raising.
"""


class ReportInputError(ValueError):
    """Upload cannot be processed at all."""


class EmptyReportError(ReportInputError):
    """Upload is empty, or no text could be salvaged from it."""


class TemplateFetchError(RuntimeError):
    """A template source failed. Always caught by the resolver."""
