"""Artifact addressing models — pure data, no I/O."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, model_validator

from cyclejournal.cycle import CycleDate


class ArtifactKind(StrEnum):
    """Kind of per-date text artifact."""

    ENTRY = "entry"
    SUMMARY = "summary"
    STATUS = "status"
    PROMPT = "prompt"


class ArtifactKey(BaseModel):
    """Address of one artifact: ``(date, kind, index)``.

    Only prompts carry an index (1-based); every other kind has exactly
    one artifact per date.
    """

    model_config = ConfigDict(frozen=True)

    date: CycleDate
    kind: ArtifactKind
    index: int | None = None

    @model_validator(mode="after")
    def _check_index(self) -> ArtifactKey:
        if self.kind == ArtifactKind.PROMPT:
            if self.index is None or self.index < 1:
                raise ValueError(f"prompt artifacts need an index >= 1, got {self.index}")
        elif self.index is not None:
            raise ValueError(f"{self.kind} artifacts take no index")
        return self

    @property
    def filename(self) -> str:
        if self.kind == ArtifactKind.PROMPT:
            return f"prompt{self.index}.txt"
        return f"{self.kind.value}.txt"

    def __str__(self) -> str:
        suffix = "" if self.index is None else str(self.index)
        return f"{self.date}/{self.kind.value}{suffix}"
