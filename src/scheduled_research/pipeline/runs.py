"""
Run State Machine.

pending -> running -> completed | failed. Terminal states are never left.
Claiming (pending -> running) is a compare-and-swap on the stored status,
so two triggers racing for the same run cannot both execute it.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from ..errors import InvalidRunTransition
from ..models import Run, RunStatus
from ..storage import SQLiteJobStore

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.PENDING: frozenset({RunStatus.RUNNING}),
    RunStatus.RUNNING: frozenset({RunStatus.COMPLETED, RunStatus.FAILED}),
    RunStatus.COMPLETED: frozenset(),
    RunStatus.FAILED: frozenset(),
}


class RunStateMachine:
    """Owns the lifecycle of runs persisted in a job store."""

    def __init__(
        self,
        store: SQLiteJobStore,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.clock = clock

    def _check(self, run: Run, target: RunStatus) -> None:
        if target not in ALLOWED_TRANSITIONS[run.status]:
            raise InvalidRunTransition(
                f"Run {run.id} cannot move from {run.status.value} to {target.value}"
            )

    def claim(self, run: Run) -> bool:
        """
        Mark a pending run as running before any work starts.

        Returns:
            False if another caller claimed it first or it is not pending.
        """
        started_at = self.clock()
        if not self.store.claim_run(run.id, started_at):
            logger.warning(f"Run {run.id} could not be claimed (not pending)")
            return False

        run.status = RunStatus.RUNNING
        run.started_at = started_at
        logger.info(f"Claimed run {run.id}")
        return True

    def complete(self, run: Run, report_content: str, report_format: str) -> None:
        self._check(run, RunStatus.COMPLETED)
        completed_at = self.clock()
        self.store.update_run(
            run.id,
            status=RunStatus.COMPLETED,
            completed_at=completed_at,
            report_content=report_content,
            report_format=report_format,
        )
        run.status = RunStatus.COMPLETED
        run.completed_at = completed_at
        run.report_content = report_content
        run.report_format = report_format
        logger.info(f"Run {run.id} completed ({len(report_content)} chars)")

    def fail(self, run: Run, error_message: Optional[str]) -> None:
        self._check(run, RunStatus.FAILED)
        message = error_message or "Unknown error"
        completed_at = self.clock()
        self.store.update_run(
            run.id,
            status=RunStatus.FAILED,
            completed_at=completed_at,
            error_message=message,
        )
        run.status = RunStatus.FAILED
        run.completed_at = completed_at
        run.error_message = message
        logger.error(f"Run {run.id} failed: {message}")

    def record_delivery(self, run: Run, email_sent: bool) -> None:
        """Delivery outcome is tracked apart from the run status."""
        self.store.update_run(run.id, email_sent=email_sent)
        run.email_sent = email_sent
