"""
Email service for delivering resume analysis reports over SMTP.
"""
from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Iterable, Optional

from errors import DeliveryError
from models import EmailReportRequest, Settings

logger = logging.getLogger(__name__)

REPORT_SUBJECT = "Your AI Resume Analyzer Report"
EMPTY_LIST_PLACEHOLDER = "-"


def _join_words(words: Iterable[str]) -> str:
    joined = ", ".join(html.escape(w) for w in words if w)
    return joined or EMPTY_LIST_PLACEHOLDER


def build_report_html(report: EmailReportRequest, preview_chars: int = 6000) -> str:
    """
    Format an analysis as an HTML email body.

    The extracted text is truncated to ``preview_chars`` before being
    HTML-escaped, so the preview never ends inside an entity.
    """
    preview = html.escape((report.extracted_text or "")[:max(0, preview_chars)])
    return f"""
      <h2>AI Resume Analyzer Report</h2>
      <p><strong>Match Score:</strong> {report.match_percentage}%</p>
      <h3>Matched Keywords</h3>
      <p>{_join_words(report.matched_words)}</p>
      <h3>Missing Keywords</h3>
      <p>{_join_words(report.missing_words)}</p>
      <h3>Extracted Resume Text</h3>
      <pre style="white-space:pre-wrap;">{preview}</pre>
    """


def build_report_text(report: EmailReportRequest) -> str:
    """Plain-text alternative for mail clients without HTML."""
    return "\n".join([
        "AI Resume Analyzer Report",
        f"Match Score: {report.match_percentage}%",
        f"Matched Keywords: {', '.join(report.matched_words) or EMPTY_LIST_PLACEHOLDER}",
        f"Missing Keywords: {', '.join(report.missing_words) or EMPTY_LIST_PLACEHOLDER}",
    ])


class EmailService:
    """Service for sending analysis reports through an SMTP relay."""

    def __init__(self, settings: Settings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.timeout = settings.smtp_timeout_seconds
        self.user = settings.email_user
        self.password = settings.email_pass
        self.sender = settings.email_from or settings.email_user
        self.preview_chars = settings.report_preview_chars

    @property
    def is_configured(self) -> bool:
        return bool(self.user and self.password and self.sender)

    def build_message(self, recipient: str, report: EmailReportRequest) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = REPORT_SUBJECT
        msg["From"] = self.sender or ""
        msg["To"] = recipient
        msg.attach(MIMEText(build_report_text(report), "plain"))
        msg.attach(MIMEText(build_report_html(report, self.preview_chars), "html"))
        return msg

    def send_report(self, recipient: Optional[str], report: EmailReportRequest) -> None:
        """
        Send the report to ``recipient``.

        Raises:
            DeliveryError: If SMTP is not configured or the transport fails.
                The error message never includes credentials or server replies.
        """
        if not self.is_configured:
            raise DeliveryError(
                "Email delivery is not configured.",
                detail="EMAIL_USER/EMAIL_PASS not set",
            )
        if not recipient:
            raise DeliveryError(detail="empty recipient")

        msg = self.build_message(recipient, report)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery via {self.host}:{self.port} failed: {type(e).__name__}: {e}")
            raise DeliveryError(detail=f"{type(e).__name__}: {e}") from e

        logger.info(f"Report emailed to {recipient} ({report.match_percentage}%)")
