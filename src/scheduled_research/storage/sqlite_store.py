"""SQLite storage backend for research jobs and their runs."""
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from ..models import (
    DeliveryMethod,
    ExecutionMode,
    Job,
    ResearchDepth,
    Run,
    RunStatus,
    ScheduleType,
)

logger = logging.getLogger(__name__)

# Columns a run update may touch; anything else is a programming error
RUN_UPDATE_COLUMNS = {
    "status",
    "started_at",
    "completed_at",
    "report_content",
    "report_format",
    "error_message",
    "email_sent",
}


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SQLiteJobStore:
    """
    SQLite-backed store for jobs and runs.

    Every method opens its own connection, so one store instance can be
    shared by the API server and the executor. Run claiming is a single
    conditional UPDATE, which makes it safe across processes.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connect() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS research_jobs (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL,
                    enhanced_description TEXT,
                    industry TEXT,
                    research_depth TEXT NOT NULL DEFAULT 'standard',
                    source_types TEXT NOT NULL DEFAULT '[]',
                    geographic_focus TEXT,
                    country TEXT,
                    custom_websites TEXT NOT NULL DEFAULT '[]',
                    report_format TEXT NOT NULL DEFAULT 'detailed',
                    delivery_method TEXT NOT NULL DEFAULT 'none',
                    delivery_email TEXT,
                    schedule_type TEXT NOT NULL DEFAULT 'manual',
                    custom_interval_days INTEGER,
                    execution_mode TEXT NOT NULL DEFAULT 'manual',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    last_run_at TEXT,
                    next_run_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS research_runs (
                    id TEXT PRIMARY KEY,
                    task_id TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at TEXT NOT NULL,
                    started_at TEXT,
                    completed_at TEXT,
                    report_content TEXT,
                    report_format TEXT,
                    error_message TEXT,
                    email_sent INTEGER,
                    FOREIGN KEY (task_id) REFERENCES research_jobs(id) ON DELETE CASCADE
                );

                CREATE INDEX IF NOT EXISTS idx_jobs_next_run ON research_jobs(next_run_at);
                CREATE INDEX IF NOT EXISTS idx_runs_task ON research_runs(task_id);
                CREATE INDEX IF NOT EXISTS idx_runs_status ON research_runs(status);
            """)
            conn.commit()

    # --- Jobs ---

    def save_job(self, job: Job) -> Job:
        """Insert or replace a job."""
        job.updated_at = datetime.now()
        with self._connect() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO research_jobs
                   (id, title, description, enhanced_description, industry,
                    research_depth, source_types, geographic_focus, country,
                    custom_websites, report_format, delivery_method, delivery_email,
                    schedule_type, custom_interval_days, execution_mode, is_active,
                    last_run_at, next_run_at, created_at, updated_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    job.id,
                    job.title,
                    job.description,
                    job.enhanced_description,
                    job.industry,
                    job.research_depth.value,
                    json.dumps(job.source_types),
                    job.geographic_focus,
                    job.country,
                    json.dumps(job.custom_websites),
                    job.report_format,
                    job.delivery_method.value,
                    job.delivery_email,
                    job.schedule_type.value,
                    job.custom_interval_days,
                    job.execution_mode.value,
                    int(job.is_active),
                    _ts(job.last_run_at),
                    _ts(job.next_run_at),
                    _ts(job.created_at),
                    _ts(job.updated_at),
                ),
            )
            conn.commit()
        return job

    def get_job(self, job_id: str) -> Optional[Job]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM research_jobs WHERE id = ?", (job_id,)
            ).fetchone()
        return self._row_to_job(row) if row else None

    def list_jobs(self) -> list[Job]:
        """All jobs, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM research_jobs ORDER BY created_at DESC"
            ).fetchall()
        return [self._row_to_job(row) for row in rows]

    def delete_job(self, job_id: str) -> bool:
        """Delete a job and its runs. Returns False if it did not exist."""
        with self._connect() as conn:
            conn.execute("DELETE FROM research_runs WHERE task_id = ?", (job_id,))
            cursor = conn.execute("DELETE FROM research_jobs WHERE id = ?", (job_id,))
            conn.commit()
        return cursor.rowcount == 1

    def earliest_due_job(self, now: datetime) -> Optional[Job]:
        """The active automatic job with the oldest next_run_at <= now."""
        with self._connect() as conn:
            row = conn.execute(
                """SELECT * FROM research_jobs
                   WHERE is_active = 1
                     AND execution_mode = ?
                     AND next_run_at IS NOT NULL
                     AND next_run_at <= ?
                   ORDER BY next_run_at ASC
                   LIMIT 1""",
                (ExecutionMode.AUTOMATIC.value, now.isoformat()),
            ).fetchone()
        return self._row_to_job(row) if row else None

    def claim_due_job(
        self,
        job_id: str,
        due_at: datetime,
        next_run_at: Optional[datetime],
    ) -> bool:
        """
        Atomically move a due job's next_run_at from `due_at` forward.

        Returns:
            True if this caller won the claim, False if another trigger
            already advanced the job.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """UPDATE research_jobs
                   SET next_run_at = ?, updated_at = ?
                   WHERE id = ? AND next_run_at = ?""",
                (_ts(next_run_at), _ts(datetime.now()), job_id, _ts(due_at)),
            )
            conn.commit()
        return cursor.rowcount == 1

    def update_job_schedule(
        self,
        job_id: str,
        last_run_at: datetime,
        next_run_at: Optional[datetime],
    ) -> None:
        """Record an execution attempt and the next due time on the job."""
        with self._connect() as conn:
            conn.execute(
                """UPDATE research_jobs
                   SET last_run_at = ?, next_run_at = ?, updated_at = ?
                   WHERE id = ?""",
                (_ts(last_run_at), _ts(next_run_at), _ts(datetime.now()), job_id),
            )
            conn.commit()

    # --- Runs ---

    def create_run(self, task_id: str) -> Run:
        """Create a pending run for a job."""
        run = Run(task_id=task_id)
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO research_runs (id, task_id, status, created_at)
                   VALUES (?, ?, ?, ?)""",
                (run.id, run.task_id, run.status.value, _ts(run.created_at)),
            )
            conn.commit()
        logger.info(f"Created pending run {run.id} for job {task_id}")
        return run

    def get_run(self, run_id: str) -> Optional[Run]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM research_runs WHERE id = ?", (run_id,)
            ).fetchone()
        return self._row_to_run(row) if row else None

    def list_runs(self, task_id: str) -> list[Run]:
        """Runs of a job, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM research_runs WHERE task_id = ? ORDER BY created_at DESC",
                (task_id,),
            ).fetchall()
        return [self._row_to_run(row) for row in rows]

    def oldest_pending_run(self) -> Optional[Run]:
        with self._connect() as conn:
            row = conn.execute(
                """SELECT * FROM research_runs
                   WHERE status = ?
                   ORDER BY created_at ASC
                   LIMIT 1""",
                (RunStatus.PENDING.value,),
            ).fetchone()
        return self._row_to_run(row) if row else None

    def claim_run(self, run_id: str, started_at: datetime) -> bool:
        """
        Atomically move a run from pending to running.

        Returns:
            True if this caller won the claim, False if the run was not
            pending (already claimed, finished or missing).
        """
        with self._connect() as conn:
            cursor = conn.execute(
                """UPDATE research_runs
                   SET status = ?, started_at = ?
                   WHERE id = ? AND status = ?""",
                (
                    RunStatus.RUNNING.value,
                    _ts(started_at),
                    run_id,
                    RunStatus.PENDING.value,
                ),
            )
            conn.commit()
        return cursor.rowcount == 1

    def update_run(self, run_id: str, **fields: Any) -> None:
        """Persist a subset of run columns."""
        unknown = set(fields) - RUN_UPDATE_COLUMNS
        if unknown:
            raise ValueError(f"Unknown run columns: {sorted(unknown)}")
        if not fields:
            return

        values = []
        for name, value in fields.items():
            if isinstance(value, RunStatus):
                value = value.value
            elif isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, bool):
                value = int(value)
            values.append(value)

        assignments = ", ".join(f"{name} = ?" for name in fields)
        with self._connect() as conn:
            conn.execute(
                f"UPDATE research_runs SET {assignments} WHERE id = ?",
                (*values, run_id),
            )
            conn.commit()

    # --- Row mapping ---

    def _row_to_job(self, row: sqlite3.Row) -> Job:
        return Job(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            enhanced_description=row["enhanced_description"],
            industry=row["industry"],
            research_depth=ResearchDepth(row["research_depth"]),
            source_types=json.loads(row["source_types"]),
            geographic_focus=row["geographic_focus"],
            country=row["country"],
            custom_websites=json.loads(row["custom_websites"]),
            report_format=row["report_format"],
            delivery_method=DeliveryMethod(row["delivery_method"]),
            delivery_email=row["delivery_email"],
            schedule_type=ScheduleType(row["schedule_type"]),
            custom_interval_days=row["custom_interval_days"],
            execution_mode=ExecutionMode(row["execution_mode"]),
            is_active=bool(row["is_active"]),
            last_run_at=_parse_ts(row["last_run_at"]),
            next_run_at=_parse_ts(row["next_run_at"]),
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    def _row_to_run(self, row: sqlite3.Row) -> Run:
        email_sent = row["email_sent"]
        return Run(
            id=row["id"],
            task_id=row["task_id"],
            status=RunStatus(row["status"]),
            created_at=_parse_ts(row["created_at"]),
            started_at=_parse_ts(row["started_at"]),
            completed_at=_parse_ts(row["completed_at"]),
            report_content=row["report_content"],
            report_format=row["report_format"],
            error_message=row["error_message"],
            email_sent=None if email_sent is None else bool(email_sent),
        )
