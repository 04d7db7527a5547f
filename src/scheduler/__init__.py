"""Generation scheduling — daily rollups, prompt passes, and on-demand requests."""

from cyclejournal.scheduler.models import (
    GenerationRequest,
    ScheduledJob,
    SchedulerState,
    SummaryResponse,
    parse_summary_response,
    prompt_type_for,
)
from cyclejournal.scheduler.services import GenerationScheduler, KeyedLocks

__all__ = [
    "GenerationRequest",
    "GenerationScheduler",
    "KeyedLocks",
    "ScheduledJob",
    "SchedulerState",
    "SummaryResponse",
    "parse_summary_response",
    "prompt_type_for",
]
