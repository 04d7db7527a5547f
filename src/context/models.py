"""Context fragment model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from cyclejournal.cycle import CycleDate
from cyclejournal.store.models import ArtifactKind


class ContextFragment(BaseModel):
    """One labelled piece of history fed to prompt generation."""

    model_config = ConfigDict(frozen=True)

    source_date: CycleDate
    source_kind: ArtifactKind
    label: str
    text: str

    def render(self) -> str:
        return f"{self.label}: {self.text.strip()}"


def render_fragments(fragments: list[ContextFragment]) -> str:
    """Join rendered fragments with blank lines, oldest first."""
    return "\n\n".join(f.render() for f in fragments)
