"""Delivery Dispatcher - emails finished reports when a job asks for it."""
import logging
from typing import Optional

from ..models import DeliveryMethod, Job
from .capabilities import EmailCapability

logger = logging.getLogger(__name__)


class DeliveryDispatcher:
    """
    Sends completed reports by email.

    The outcome is reported back as a boolean and never raised, so a
    delivery problem cannot change the status of the run it belongs to.
    """

    def __init__(self, email: Optional[EmailCapability] = None):
        self.email = email

    @staticmethod
    def wants_email(job: Job) -> bool:
        return bool(job.delivery_email) and DeliveryMethod(job.delivery_method).includes_email

    async def deliver(self, job: Job, report_content: str) -> Optional[bool]:
        """
        Email the report if the job is configured for it.

        Returns:
            None if no delivery was due, otherwise whether the send succeeded.
        """
        if not self.wants_email(job):
            return None

        if self.email is None:
            logger.warning(f"No email channel configured; report for '{job.title}' not sent")
            return False

        try:
            response = await self.email.send_report(
                to=job.delivery_email,
                task_title=job.title,
                report_content=report_content,
                report_format=job.report_format,
            )
        except Exception as e:
            logger.error(f"Failed to send report email to {job.delivery_email}: {e}")
            return False

        sent = bool(response and response.success)
        logger.info(f"Email sent to {job.delivery_email}: {sent}")
        return sent
