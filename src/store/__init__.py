"""Content store — per-date entry, summary, status, and prompt artifacts."""

from cyclejournal.store.models import ArtifactKey, ArtifactKind
from cyclejournal.store.services import ContentStore, FileContentStore

__all__ = [
    "ArtifactKey",
    "ArtifactKind",
    "ContentStore",
    "FileContentStore",
]
