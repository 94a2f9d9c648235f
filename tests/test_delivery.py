"""Tests for the delivery dispatcher."""
from unittest.mock import AsyncMock

import pytest

from scheduled_research.models import DeliveryMethod
from scheduled_research.pipeline.capabilities import EmailResponse
from scheduled_research.pipeline.delivery import DeliveryDispatcher


class TestDeliveryDispatcher:
    """Tests for DeliveryDispatcher.deliver."""

    @pytest.mark.asyncio
    async def test_sends_email(self, sample_job, mock_email):
        sent = await DeliveryDispatcher(mock_email).deliver(sample_job, "# Report")

        assert sent is True
        mock_email.send_report.assert_awaited_once_with(
            to="analyst@example.com",
            task_title=sample_job.title,
            report_content="# Report",
            report_format="detailed",
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", [DeliveryMethod.NONE, DeliveryMethod.APP])
    async def test_no_delivery_due(self, sample_job, mock_email, method):
        sample_job.delivery_method = method
        assert await DeliveryDispatcher(mock_email).deliver(sample_job, "r") is None
        mock_email.send_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_address(self, sample_job, mock_email):
        sample_job.delivery_method = DeliveryMethod.BOTH
        sample_job.delivery_email = None
        assert await DeliveryDispatcher(mock_email).deliver(sample_job, "r") is None

    @pytest.mark.asyncio
    async def test_no_channel(self, sample_job):
        assert await DeliveryDispatcher(None).deliver(sample_job, "r") is False

    @pytest.mark.asyncio
    async def test_send_error_is_not_raised(self, sample_job):
        email = AsyncMock()
        email.send_report = AsyncMock(side_effect=RuntimeError("quota exceeded"))
        assert await DeliveryDispatcher(email).deliver(sample_job, "r") is False

    @pytest.mark.asyncio
    async def test_unsuccessful_send(self, sample_job):
        email = AsyncMock()
        email.send_report = AsyncMock(return_value=EmailResponse(success=False))
        assert await DeliveryDispatcher(email).deliver(sample_job, "r") is False
