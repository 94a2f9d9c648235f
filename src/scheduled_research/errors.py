"""Exception hierarchy for the scheduled research pipeline."""


class ScheduledResearchError(Exception):
    """Base class for all pipeline errors."""


class InvalidTriggerError(ScheduledResearchError):
    """Malformed trigger payload or unknown job/run. Nothing was mutated."""


class UpstreamError(ScheduledResearchError):
    """Search or analysis capability failed or reported success=False."""


class InsufficientContentError(ScheduledResearchError):
    """The compiled research corpus is below the minimum length."""


class InvalidRunTransition(ScheduledResearchError):
    """A run was moved out of order or revisited after a terminal state."""


class UnsupportedFormatError(ScheduledResearchError, ValueError):
    """Requested report format is not one of the supported renderers."""
