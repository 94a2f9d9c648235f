"""FastAPI server for Scheduled Research."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Annotated, Any, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .auth import TokenData, get_current_user
from ..core.auth import get_oauth_credentials
from ..core.config import settings
from ..errors import UnsupportedFormatError
from ..integrations import (
    FirecrawlClient,
    GeminiReportAnalyzer,
    GmailClient,
    GmailReportSender,
)
from ..models import (
    DeliveryMethod,
    ExecutionMode,
    Job,
    ResearchDepth,
    ScheduleType,
)
from ..pipeline import ScheduledTaskExecutor, compute_next_run
from ..reports import Report, render
from ..storage import SQLiteJobStore

logger = logging.getLogger(__name__)

# Rate limiter configuration
limiter = Limiter(key_func=get_remote_address)

# Type alias for authenticated caller dependency
AuthenticatedUser = Annotated[TokenData, Depends(get_current_user)]


def _build_email_sender() -> Optional[GmailReportSender]:
    """Gmail delivery is optional; the server runs without it."""
    if not settings.oauth_token_path.exists():
        logger.warning("OAuth token not found. Starting without email delivery.")
        logger.warning("Run the OAuth flow manually to enable Gmail delivery.")
        return None

    try:
        creds = get_oauth_credentials(settings.gmail_scopes)
    except FileNotFoundError as e:
        logger.warning(f"Starting without email delivery: {e}")
        return None
    except Exception as e:
        logger.warning(f"Error initializing Gmail integration: {e}")
        return None

    return GmailReportSender(GmailClient(creds))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the store and executor unless they were injected already."""
    firecrawl: Optional[FirecrawlClient] = None

    if getattr(app.state, "executor", None) is None:
        store = SQLiteJobStore(settings.database_path)
        firecrawl = FirecrawlClient()
        app.state.store = store
        app.state.executor = ScheduledTaskExecutor(
            store=store,
            search=firecrawl,
            scraper=firecrawl,
            analyzer=GeminiReportAnalyzer(),
            email=_build_email_sender(),
        )
        logger.info(f"Scheduled Research initialized (database: {settings.database_path})")

    try:
        yield
    finally:
        if firecrawl is not None:
            await firecrawl.close()
        logger.info("Scheduled Research shutting down")


app = FastAPI(
    title="Scheduled Research API",
    description="Scheduled web research jobs with report synthesis and export",
    version="1.0.0",
    lifespan=lifespan,
)

# Add rate limiter to app state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# --- Request Models ---

class TriggerRequest(BaseModel):
    """Trigger payload. Both ids or neither."""
    model_config = ConfigDict(populate_by_name=True)

    task_id: Optional[str] = Field(None, alias="taskId")
    run_id: Optional[str] = Field(None, alias="runId")


class ExportRequest(BaseModel):
    """Request model for exporting a report."""
    report: Optional[dict[str, Any]] = None
    format: str = "html"


class JobCreate(BaseModel):
    """Request model for creating or replacing a job."""
    id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1, max_length=4000)
    enhanced_description: Optional[str] = Field(None, max_length=8000)
    industry: Optional[str] = None
    research_depth: ResearchDepth = ResearchDepth.STANDARD
    source_types: list[str] = Field(default_factory=list)
    geographic_focus: Optional[str] = None
    country: Optional[str] = None
    custom_websites: list[str] = Field(default_factory=list)
    report_format: str = "detailed"
    delivery_method: DeliveryMethod = DeliveryMethod.NONE
    delivery_email: Optional[str] = None
    schedule_type: ScheduleType = ScheduleType.MANUAL
    custom_interval_days: Optional[int] = Field(None, ge=1, le=365)
    execution_mode: ExecutionMode = ExecutionMode.MANUAL
    is_active: bool = True


def _get_store(request: Request) -> SQLiteJobStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return store


def _get_executor(request: Request) -> ScheduledTaskExecutor:
    executor = getattr(request.app.state, "executor", None)
    if executor is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return executor


def _trigger_response(result) -> JSONResponse:
    if result.client_error:
        status_code = 400
    elif result.success:
        status_code = 200
    else:
        status_code = 500
    return JSONResponse(status_code=status_code, content=result.to_dict())


# --- Endpoints ---

@app.get("/health")
@limiter.limit("300/minute")
async def health_check(request: Request):
    """Health check endpoint - no authentication required."""
    return {
        "status": "healthy",
        "service": "scheduled-research",
        "version": "1.0.0",
    }


@app.post("/execute-scheduled-task")
@limiter.limit("30/minute")
async def execute_scheduled_task(
    request: Request,
    current_user: AuthenticatedUser,
    payload: Optional[TriggerRequest] = None,
):
    """
    Execute one run.

    With taskId and runId the named pending run is executed; with an empty
    body the oldest pending run, or else the earliest due automatic job.
    """
    executor = _get_executor(request)
    payload = payload or TriggerRequest()
    logger.info(f"Trigger requested by {current_user.sub}")
    result = await executor.trigger(task_id=payload.task_id, run_id=payload.run_id)
    return _trigger_response(result)


@app.post("/export-report")
@limiter.limit("60/minute")
async def export_report(
    request: Request,
    current_user: AuthenticatedUser,
    payload: ExportRequest,
):
    """Render a report as a downloadable html, markdown, json or pdf file."""
    if not payload.report:
        raise HTTPException(400, "Report data is required")

    try:
        report = Report.from_dict(payload.report)
        rendered = render(report, payload.format)
    except UnsupportedFormatError as e:
        raise HTTPException(400, str(e))
    except (KeyError, TypeError, ValueError) as e:
        raise HTTPException(400, f"Invalid report data: {e}")

    return Response(
        content=rendered.body,
        media_type=rendered.content_type,
        headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
    )


@app.post("/tasks", status_code=201)
@limiter.limit("30/minute")
async def save_task(
    request: Request,
    current_user: AuthenticatedUser,
    task: JobCreate,
):
    """Create a job, or replace the job with the given id."""
    store = _get_store(request)
    now = datetime.now()

    fields = task.model_dump(exclude={"id"})
    existing = store.get_job(task.id) if task.id else None
    if existing is not None:
        job = Job(
            id=existing.id,
            created_at=existing.created_at,
            last_run_at=existing.last_run_at,
            **fields,
        )
    elif task.id:
        job = Job(id=task.id, **fields)
    else:
        job = Job(**fields)

    job.updated_at = now
    job.next_run_at = compute_next_run(job, now)
    store.save_job(job)
    logger.info(f"Saved job {job.id} ({job.schedule_type.value}, {job.execution_mode.value})")
    return job.to_dict()


@app.get("/tasks")
@limiter.limit("100/minute")
async def list_tasks(request: Request, current_user: AuthenticatedUser):
    """List all jobs. Requires authentication."""
    return [job.to_dict() for job in _get_store(request).list_jobs()]


@app.get("/tasks/{task_id}")
@limiter.limit("100/minute")
async def get_task(
    request: Request,
    current_user: AuthenticatedUser,
    task_id: str,
):
    """Get a job by ID."""
    job = _get_store(request).get_job(task_id)
    if job is None:
        raise HTTPException(404, f"Task not found: {task_id}")
    return job.to_dict()


@app.delete("/tasks/{task_id}", status_code=204)
@limiter.limit("30/minute")
async def delete_task(
    request: Request,
    current_user: AuthenticatedUser,
    task_id: str,
):
    """Delete a job and its runs. Requires authentication."""
    if not _get_store(request).delete_job(task_id):
        raise HTTPException(404, f"Task not found: {task_id}")
    logger.info(f"Job {task_id} deleted by {current_user.sub}")


@app.post("/tasks/{task_id}/run", status_code=201)
@limiter.limit("10/minute")
async def run_task(
    request: Request,
    current_user: AuthenticatedUser,
    task_id: str,
    execute: bool = False,
):
    """
    Create a pending run for a job ("run now").

    With execute=true the run is executed right away and the trigger
    outcome is returned instead of the run.
    """
    store = _get_store(request)
    job = store.get_job(task_id)
    if job is None:
        raise HTTPException(404, f"Task not found: {task_id}")

    run = store.create_run(job.id)

    if execute:
        result = await _get_executor(request).trigger(task_id=job.id, run_id=run.id)
        return _trigger_response(result)

    return run.to_dict()


@app.get("/tasks/{task_id}/runs")
@limiter.limit("100/minute")
async def list_task_runs(
    request: Request,
    current_user: AuthenticatedUser,
    task_id: str,
):
    """List runs of a job, newest first."""
    store = _get_store(request)
    if store.get_job(task_id) is None:
        raise HTTPException(404, f"Task not found: {task_id}")
    return [run.to_dict() for run in store.list_runs(task_id)]


def run() -> None:
    """Console entry point."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "scheduled_research.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
    )


# Run with: uvicorn scheduled_research.api.server:app --reload
if __name__ == "__main__":
    run()
