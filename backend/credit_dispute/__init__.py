"""Credit Dispute Engine - credit report extraction, issue classification and dispute letter composition."""

__version__ = "1.0.0"
