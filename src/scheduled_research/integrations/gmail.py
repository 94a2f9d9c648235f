"""Gmail API integration for report delivery."""
import asyncio
import base64
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from ..core.config import settings
from ..core.rate_limiter import RateLimiter
from ..pipeline.capabilities import EmailResponse
from ..reports.html_renderer import safe_markdown_html

logger = logging.getLogger(__name__)


class GmailClient:
    """Client for sending mail through the Gmail API."""

    def __init__(self, credentials: Credentials):
        self.service = build("gmail", "v1", credentials=credentials)
        self.rate_limiter = RateLimiter(settings.gmail_rate_limit)

    def send_message(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> dict:
        """
        Send an email message.

        Args:
            to: Recipient email address
            subject: Email subject
            body: Plain text body
            html_body: Optional HTML alternative

        Returns:
            Sent message metadata
        """
        self.rate_limiter.wait()

        if html_body:
            message = MIMEMultipart("alternative")
            message.attach(MIMEText(body, "plain", "utf-8"))
            message.attach(MIMEText(html_body, "html", "utf-8"))
        else:
            message = MIMEText(body, "plain", "utf-8")
        message["to"] = to
        message["subject"] = subject

        raw = base64.urlsafe_b64encode(message.as_bytes()).decode()
        return (
            self.service.users()
            .messages()
            .send(userId="me", body={"raw": raw})
            .execute()
        )


class GmailReportSender:
    """Email capability: delivers finished research reports via Gmail."""

    def __init__(self, client: GmailClient):
        self.client = client

    @staticmethod
    def subject_for(task_title: str) -> str:
        return f"Research Report: {task_title}"

    async def send_report(
        self,
        to: str,
        task_title: str,
        report_content: str,
        report_format: str,
    ) -> EmailResponse:
        """Send a report; the markdown body also goes out as HTML."""
        html_body = safe_markdown_html(report_content)
        try:
            sent = await asyncio.to_thread(
                self.client.send_message,
                to,
                self.subject_for(task_title),
                report_content,
                html_body,
            )
        except Exception as e:
            logger.error(f"Gmail send failed for '{task_title}' ({report_format}): {e}")
            return EmailResponse(success=False)

        return EmailResponse(success=True, message_id=sent.get("id"))
