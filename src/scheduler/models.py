"""Scheduler models and pure helpers — no I/O."""

from __future__ import annotations

import json
from enum import StrEnum

from pydantic import BaseModel, Field

from cyclejournal.cycle import CycleDate, DateRole
from cyclejournal.llm import strip_json_fences
from cyclejournal.prompts import PromptType

_ROLE_TO_PROMPT_TYPE: dict[DateRole, PromptType] = {
    DateRole.YEARLY: PromptType.YEARLY_REFLECTION,
    DateRole.MONTHLY: PromptType.MONTHLY_REFLECTION,
    DateRole.WEEKLY: PromptType.WEEKLY_REFLECTION,
    DateRole.DAILY: PromptType.DAILY,
}


def prompt_type_for(target: CycleDate) -> PromptType:
    """Template family for *target*, by role precedence year > month > week > day."""
    return _ROLE_TO_PROMPT_TYPE[target.role]


class SchedulerState(StrEnum):
    STOPPED = "stopped"
    WAITING = "waiting"
    GENERATING = "generating"


class ScheduledJob(StrEnum):
    """The two wall-clock jobs of the periodic loop."""

    PROCESSING = "processing"
    PROMPTS = "prompts"


class GenerationRequest(BaseModel):
    """Input to a generation pass.

    ``numbers`` of None means "every missing prompt up to the daily
    maximum"; ``skip_checks`` skips the summary/status catch-up step.
    """

    target: CycleDate
    skip_checks: bool = False
    numbers: list[int] | None = Field(default=None)


class SummaryResponse(BaseModel):
    """Parsed output of the joint summary+status backend call."""

    summary: str
    status: str | None = None


def parse_summary_response(raw: str) -> SummaryResponse:
    """Parse the backend's JSON summary/status reply.

    Output that is not a JSON object is taken as a plain summary with no
    status change.
    """
    try:
        data = json.loads(strip_json_fences(raw))
    except json.JSONDecodeError:
        return SummaryResponse(summary=raw.strip())
    if not isinstance(data, dict):
        return SummaryResponse(summary=raw.strip())
    summary = str(data.get("summary") or "").strip() or raw.strip()
    status = data.get("status")
    if not isinstance(status, str) or not status.strip() or status.strip().lower() == "null":
        status = None
    else:
        status = status.strip()
    return SummaryResponse(summary=summary, status=status)
