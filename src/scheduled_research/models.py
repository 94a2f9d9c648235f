"""Domain models: jobs, runs and ephemeral search results."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4


class ResearchDepth(str, Enum):
    """How many search results a run asks for."""
    QUICK = "quick"
    STANDARD = "standard"
    DEEP = "deep"


class GeographicFocus(str, Enum):
    """Geographic focus presets offered to job authors."""
    GLOBAL = "global"
    NORTH_AMERICA = "north-america"
    EUROPE = "europe"
    ASIA_PACIFIC = "asia-pacific"
    MIDDLE_EAST = "middle-east"
    AFRICA = "africa"
    LATIN_AMERICA = "latin-america"
    COUNTRY = "country"


class DeliveryMethod(str, Enum):
    """Where a finished report goes. APP is in-app only, same as NONE."""
    NONE = "none"
    APP = "app"
    EMAIL = "email"
    BOTH = "both"

    @property
    def includes_email(self) -> bool:
        return self in (DeliveryMethod.EMAIL, DeliveryMethod.BOTH)


class ScheduleType(str, Enum):
    """Recurrence rule of a job."""
    MANUAL = "manual"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    ANNUALLY = "annually"
    CUSTOM = "custom"


class ExecutionMode(str, Enum):
    """Whether the trigger may pick the job up on its own."""
    MANUAL = "manual"
    AUTOMATIC = "automatic"


class RunStatus(str, Enum):
    """Lifecycle of one execution attempt."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)


def _new_id() -> str:
    return str(uuid4())


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class Job:
    """A user-authored research job definition."""
    title: str
    description: str
    id: str = field(default_factory=_new_id)
    enhanced_description: Optional[str] = None
    industry: Optional[str] = None
    research_depth: ResearchDepth = ResearchDepth.STANDARD
    source_types: list[str] = field(default_factory=list)
    geographic_focus: Optional[str] = None
    country: Optional[str] = None
    custom_websites: list[str] = field(default_factory=list)
    report_format: str = "detailed"
    delivery_method: DeliveryMethod = DeliveryMethod.NONE
    delivery_email: Optional[str] = None
    schedule_type: ScheduleType = ScheduleType.MANUAL
    custom_interval_days: Optional[int] = None
    execution_mode: ExecutionMode = ExecutionMode.MANUAL
    is_active: bool = True
    last_run_at: Optional[datetime] = None
    next_run_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_manual(self) -> bool:
        """Manual jobs never carry a next run time."""
        return (
            self.schedule_type == ScheduleType.MANUAL
            or self.execution_mode == ExecutionMode.MANUAL
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "enhanced_description": self.enhanced_description,
            "industry": self.industry,
            "research_depth": self.research_depth.value,
            "source_types": list(self.source_types),
            "geographic_focus": self.geographic_focus,
            "country": self.country,
            "custom_websites": list(self.custom_websites),
            "report_format": self.report_format,
            "delivery_method": self.delivery_method.value,
            "delivery_email": self.delivery_email,
            "schedule_type": self.schedule_type.value,
            "custom_interval_days": self.custom_interval_days,
            "execution_mode": self.execution_mode.value,
            "is_active": self.is_active,
            "last_run_at": _iso(self.last_run_at),
            "next_run_at": _iso(self.next_run_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Run:
    """One execution attempt of a job."""
    task_id: str
    id: str = field(default_factory=_new_id)
    status: RunStatus = RunStatus.PENDING
    created_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    report_content: Optional[str] = None
    report_format: Optional[str] = None
    error_message: Optional[str] = None
    email_sent: Optional[bool] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "task_id": self.task_id,
            "status": self.status.value,
            "created_at": _iso(self.created_at),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "report_content": self.report_content,
            "report_format": self.report_format,
            "error_message": self.error_message,
            "email_sent": self.email_sent,
        }


@dataclass
class SearchResult:
    """A single retrieved source. Lives only for the duration of a run."""
    url: str
    title: str
    description: str = ""
    markdown: str = ""
    published_date: Optional[str] = None
    status: Optional[str] = None
