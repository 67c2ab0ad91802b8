"""
Request boundary errors.

Each error carries the HTTP status code and a user-facing message. Details
meant for the server log go in ``detail`` and are never sent to the caller.
"""
from __future__ import annotations

from typing import Optional


class ResumeAnalyzerError(Exception):
    status_code: int = 500
    default_message: str = "Server error. Please try again."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class MissingInputError(ResumeAnalyzerError):
    """One or both source documents (or the recipient email) are absent."""
    status_code = 400
    default_message = "Both resume and job description PDFs are required."


class InvalidRequestError(ResumeAnalyzerError):
    """The request body or form fields failed validation."""
    status_code = 422
    default_message = "Invalid request."


class ExtractionError(ResumeAnalyzerError):
    """Document bytes could not be converted to text."""
    status_code = 422
    default_message = "Could not read text from the PDF."


class PayloadTooLargeError(ResumeAnalyzerError):
    status_code = 413

    def __init__(self, max_bytes: int, detail: Optional[str] = None):
        self.max_bytes = max_bytes
        super().__init__(f"File too large (max {format_size(max_bytes)}).", detail)


class DeliveryError(ResumeAnalyzerError):
    """The report email could not be sent."""
    status_code = 502
    default_message = "Failed to send email report."


def format_size(num_bytes: int) -> str:
    """Human readable size, e.g. 10485760 -> '10MB'."""
    for unit, factor in (("MB", 1024 * 1024), ("KB", 1024)):
        if num_bytes >= factor:
            return f"{num_bytes / factor:g}{unit}"
    return f"{num_bytes}B"
