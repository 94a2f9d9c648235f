"""
Scheduled research pipeline.

Geo resolution and query composition feed the fetch/compile stage; the
executor drives runs through analysis, delivery and rescheduling.
"""
from .delivery import DeliveryDispatcher
from .executor import ScheduledTaskExecutor, TriggerResponse
from .fetch import CompiledResearch, FetchCompileStage, compile_corpus
from .geo import CountryCode, is_strict_context, normalize_country
from .query import SourceType, compose_query
from .runs import RunStateMachine
from .scheduler import compute_next_run

__all__ = [
    "CompiledResearch",
    "CountryCode",
    "DeliveryDispatcher",
    "FetchCompileStage",
    "RunStateMachine",
    "ScheduledTaskExecutor",
    "SourceType",
    "TriggerResponse",
    "compile_corpus",
    "compose_query",
    "compute_next_run",
    "is_strict_context",
    "normalize_country",
]
