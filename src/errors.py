"""Error taxonomy and pass reporting for cyclejournal.

Calendar errors surface directly to callers. Store and backend errors
are raised by the collaborators and either propagate (synchronous
on-demand generation) or are recorded in a :class:`GenerationReport`
and logged (background generation).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class CycleJournalError(Exception):
    """Base error for everything raised by cyclejournal."""


class InvalidDateComponent(CycleJournalError):
    """A cycle date field is outside its allowed range."""


class InvalidDateString(CycleJournalError):
    """A cycle date code has the wrong length or an invalid character."""


class CycleExhausted(CycleJournalError):
    """Navigation past the last day of the 100-year cycle."""


class InvalidScheduleTime(CycleJournalError):
    """A schedule time is not ``HH:MM`` or is out of range."""


class InvalidPromptNumber(CycleJournalError):
    """A prompt number is below 1 or above the configured maximum."""


class StatusConflict(CycleJournalError):
    """A status replace was based on a version that is no longer current."""


class StoreUnavailable(CycleJournalError):
    """The content store could not be read or written."""


class BackendUnavailable(CycleJournalError):
    """The text-generation backend is unreachable or has no model loaded."""


class BackendGenerationFailed(CycleJournalError):
    """The backend was reachable but the generation call failed."""


class ArtifactOutcome(BaseModel):
    """Outcome of one artifact in a generation pass."""

    date: str
    kind: str
    index: int | None = None
    message: str = ""

    @property
    def label(self) -> str:
        if self.index is None:
            return f"{self.date}/{self.kind}"
        return f"{self.date}/{self.kind}{self.index}"


class GenerationReport(BaseModel):
    """Collects what a generation pass produced, skipped, and failed on."""

    generated: list[ArtifactOutcome] = Field(default_factory=list)
    skipped: list[ArtifactOutcome] = Field(default_factory=list)
    errors: list[ArtifactOutcome] = Field(default_factory=list)

    def add_generated(self, date: str, kind: str, index: int | None = None) -> None:
        self.generated.append(ArtifactOutcome(date=date, kind=str(kind), index=index))

    def add_skipped(self, date: str, kind: str, index: int | None = None) -> None:
        self.skipped.append(ArtifactOutcome(date=date, kind=str(kind), index=index))

    def add_error(
        self, date: str, kind: str, message: str, index: int | None = None
    ) -> None:
        self.errors.append(
            ArtifactOutcome(date=date, kind=str(kind), index=index, message=message)
        )

    def merge(self, other: GenerationReport) -> None:
        """Fold another report's outcomes into this one."""
        self.generated.extend(other.generated)
        self.skipped.extend(other.skipped)
        self.errors.extend(other.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary_line(self) -> str:
        return (
            f"{len(self.generated)} generated, {len(self.skipped)} skipped, "
            f"{len(self.errors)} failed"
        )
