"""
Scheduled task executor - the trigger entry point.

One invocation executes at most one run: an explicitly named run, else the
oldest pending run, else a fresh run for the earliest-due automatic job.
Every failure inside the pipeline ends the run as failed and is reported
in the structured response; nothing escapes the trigger.
"""
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..errors import InvalidTriggerError, UpstreamError
from ..models import Job, Run
from ..storage import SQLiteJobStore
from .capabilities import (
    AnalysisCapability,
    EmailCapability,
    ScrapeCapability,
    SearchCapability,
)
from .delivery import DeliveryDispatcher
from .fetch import FetchCompileStage
from .geo import is_strict_context, normalize_country
from .query import compose_query
from .runs import RunStateMachine
from .scheduler import compute_next_run

logger = logging.getLogger(__name__)

NO_WORK_MESSAGE = "No tasks to execute"


@dataclass
class TriggerResponse:
    """Structured outcome of one trigger invocation."""
    success: bool
    task_id: Optional[str] = None
    run_id: Optional[str] = None
    report_length: Optional[int] = None
    email_sent: Optional[bool] = None
    sources_count: Optional[int] = None
    error: Optional[str] = None
    message: Optional[str] = None
    client_error: bool = False
    debug: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Wire format; unset fields are omitted."""
        data = {
            "success": self.success,
            "taskId": self.task_id,
            "runId": self.run_id,
            "reportLength": self.report_length,
            "emailSent": self.email_sent,
            "sourcesCount": self.sources_count,
            "error": self.error,
            "message": self.message,
            "debug": self.debug,
        }
        return {k: v for k, v in data.items() if v is not None}


class ExecutionTrail:
    """Per-invocation debug log, timestamped relative to the trigger start."""

    def __init__(self):
        self._start = time.monotonic()
        self.entries: list[str] = []

    def log(self, message: str) -> None:
        logger.info(message)
        elapsed_ms = int((time.monotonic() - self._start) * 1000)
        self.entries.append(f"{elapsed_ms}ms: {message}")


def _error_text(error: Exception) -> str:
    return str(error) or error.__class__.__name__


class ScheduledTaskExecutor:
    """Drives one job run through fetch, analysis, delivery and rescheduling."""

    def __init__(
        self,
        store: SQLiteJobStore,
        search: SearchCapability,
        scraper: ScrapeCapability,
        analyzer: AnalysisCapability,
        email: Optional[EmailCapability] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.analyzer = analyzer
        self.clock = clock
        self.runs = RunStateMachine(store, clock=clock)
        self.fetch_stage = FetchCompileStage(search, scraper)
        self.delivery = DeliveryDispatcher(email)

    async def trigger(
        self,
        task_id: Optional[str] = None,
        run_id: Optional[str] = None,
    ) -> TriggerResponse:
        """
        Execute a specific run, or select the next due work.

        Args:
            task_id: Job of the run to execute. Must come with run_id.
            run_id: Run to execute. Must come with task_id.

        Returns:
            TriggerResponse. client_error is set for malformed payloads,
            unknown ids and runs that are no longer pending.
        """
        trail = ExecutionTrail()
        trail.log(f"Trigger called with taskId={task_id}, runId={run_id}")

        try:
            selected = self._select(task_id, run_id, trail)
        except InvalidTriggerError as e:
            trail.log(f"Rejected trigger: {e}")
            return TriggerResponse(
                success=False, error=str(e), client_error=True, debug=trail.entries
            )
        except Exception as e:
            logger.exception("Failed to select work")
            return TriggerResponse(success=False, error=_error_text(e), debug=trail.entries)

        if selected is None:
            return TriggerResponse(success=True, message=NO_WORK_MESSAGE, debug=trail.entries)

        job, run = selected
        return await self._execute(job, run, trail)

    def _select(
        self,
        task_id: Optional[str],
        run_id: Optional[str],
        trail: ExecutionTrail,
    ) -> Optional[tuple[Job, Run]]:
        """Pick and claim the run to execute."""
        if task_id or run_id:
            if not (task_id and run_id):
                raise InvalidTriggerError("taskId and runId must be provided together")

            job = self.store.get_job(task_id)
            if job is None:
                raise InvalidTriggerError(f"Task not found: {task_id}")
            run = self.store.get_run(run_id)
            if run is None or run.task_id != job.id:
                raise InvalidTriggerError(f"Run {run_id} not found for task {task_id}")
            if not self.runs.claim(run):
                raise InvalidTriggerError(f"Run {run_id} is not pending")
            return job, run

        run = self.store.oldest_pending_run()
        if run is not None:
            job = self.store.get_job(run.task_id)
            if job is None:
                trail.log(f"Pending run {run.id} has no job; marking failed")
                if self.runs.claim(run):
                    self.runs.fail(run, f"Task not found: {run.task_id}")
                return None
        else:
            now = self.clock()
            job = self.store.earliest_due_job(now)
            if job is None:
                return None
            if not self.store.claim_due_job(job.id, job.next_run_at, compute_next_run(job, now)):
                trail.log(f"Job '{job.title}' was claimed by another worker")
                return None
            run = self.store.create_run(job.id)
            trail.log(f"Job '{job.title}' is due, created run {run.id}")

        if not self.runs.claim(run):
            trail.log(f"Run {run.id} was claimed by another worker")
            return None
        return job, run

    async def _execute(self, job: Job, run: Run, trail: ExecutionTrail) -> TriggerResponse:
        trail.log(f"Executing task: {job.title} (run: {run.id})")
        response = TriggerResponse(success=False, task_id=job.id, run_id=run.id)

        try:
            query = compose_query(job)
            country = normalize_country(job.country)
            strict = is_strict_context(country, query)
            trail.log(f"Research query: {query}")
            trail.log(f"Country: raw={job.country}, code={country.value or None}, strict={strict}")

            compiled = await self.fetch_stage.run(
                query=query,
                strict=strict,
                depth=job.research_depth,
                custom_websites=job.custom_websites,
                country_code=country.value or None,
            )
            trail.log(
                f"Compiled {len(compiled.corpus)} chars from {compiled.source_count} sources"
            )

            report = await self._analyze(query, compiled.corpus, job.report_format)
            self.runs.complete(run, report, job.report_format)
            trail.log(f"Report generated, length: {len(report)}")

            response.success = True
            response.report_length = len(report)
            response.sources_count = compiled.source_count

        except Exception as e:
            response.error = _error_text(e)
            trail.log(f"Run failed: {response.error}")
            try:
                self.runs.fail(run, response.error)
            except Exception:
                logger.exception(f"Could not record failure of run {run.id}")

        if response.success:
            email_sent = await self.delivery.deliver(job, run.report_content or "")
            if email_sent is not None:
                self._record_delivery(run, email_sent, trail)
                response.email_sent = email_sent

        self._reschedule(job, trail)
        response.debug = trail.entries
        return response

    async def _analyze(self, query: str, corpus: str, report_format: str) -> str:
        try:
            result = await self.analyzer.analyze(
                query=query,
                content=corpus,
                type="report",
                report_format=report_format,
            )
        except Exception as e:
            raise UpstreamError(f"Analysis failed: {_error_text(e)}") from e

        if not result.success or not result.result:
            raise UpstreamError(f"Analysis failed: {result.error or 'empty report'}")
        return result.result

    def _record_delivery(self, run: Run, email_sent: bool, trail: ExecutionTrail) -> None:
        try:
            self.runs.record_delivery(run, email_sent)
            trail.log(f"Email sent: {email_sent}")
        except Exception:
            logger.exception(f"Could not record delivery outcome of run {run.id}")

    def _reschedule(self, job: Job, trail: ExecutionTrail) -> None:
        """Persist last_run_at and the next due time after every attempt."""
        now = self.clock()
        next_run = compute_next_run(job, now)
        try:
            self.store.update_job_schedule(job.id, last_run_at=now, next_run_at=next_run)
        except Exception:
            logger.exception(f"Could not update schedule of job {job.id}")
            return
        job.last_run_at = now
        job.next_run_at = next_run
        trail.log(f"Next run: {next_run.isoformat() if next_run else 'none'}")
