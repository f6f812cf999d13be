"""
errors.py — Exception Hierarchy for Quote Processing

Every failure class of the submission pipeline has its own exception so the
HTTP layer can map it to a status code in one place:

    MalformedInputError  -> 400   (body unparseable or too large)
    QuoteRejected        -> 400   (business rule violated)
    ExportError          -> recovered inside the workflow (degraded mode)
    PersistenceError     -> 500   (append log could not be written)
"""

from enum import Enum


class RejectionReason(str, Enum):
    """Business-rule rejection reasons, in the order they are checked."""
    MISSING_CUSTOMER = "MISSING_CUSTOMER"
    INVALID_NAME = "INVALID_NAME"
    INVALID_CONTACT = "INVALID_CONTACT"
    MISSING_ITEMS = "MISSING_ITEMS"
    TOTAL_MISMATCH = "TOTAL_MISMATCH"
    BELOW_MINIMUM_TOTAL = "BELOW_MINIMUM_TOTAL"


class QuoteServiceError(Exception):
    """Base class for all quote service errors."""


class MalformedInputError(QuoteServiceError):
    """The request body could not be read or decoded into a JSON object."""


class QuoteRejected(QuoteServiceError):
    """
    A submission violated a business rule.

    Attributes:
        reason (RejectionReason): Machine-readable reason code.
        message (str): Localized, human-readable message for the client.
    """
    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class ExportError(QuoteServiceError):
    """The spreadsheet could not be rendered or written to the export directory."""


class PersistenceError(QuoteServiceError):
    """The accepted record could not be appended to the quote log."""
