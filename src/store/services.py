"""File-backed content store.

Each cycle date owns one directory named by its 5-character code::

    journal_entries/
        03B25/
            entry.txt
            summary.txt
            status.txt
            prompt1.txt
            prompt2.txt

Reads of missing artifacts return ``None``; I/O failures raise
:class:`~cyclejournal.errors.StoreUnavailable`.
"""

from __future__ import annotations

import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from cyclejournal.cycle import CODE_LENGTH, CycleDate
from cyclejournal.errors import InvalidDateComponent, InvalidDateString, StoreUnavailable
from cyclejournal.store.models import ArtifactKey, ArtifactKind

logger = logging.getLogger(__name__)


class ContentStore(ABC):
    """Keyed read/write of per-date text artifacts."""

    @abstractmethod
    def exists(self, date: CycleDate, kind: ArtifactKind, index: int | None = None) -> bool:
        """Return True if the artifact is present."""

    @abstractmethod
    def read(self, date: CycleDate, kind: ArtifactKind, index: int | None = None) -> str | None:
        """Return the artifact text, or None if absent."""

    @abstractmethod
    def write(
        self, date: CycleDate, kind: ArtifactKind, text: str, index: int | None = None
    ) -> None:
        """Persist the artifact, replacing any previous text."""

    @abstractmethod
    def list_dates(self) -> list[CycleDate]:
        """All dates that have any stored artifact, oldest first."""

    # ── Derived queries ──────────────────────────────────────────

    def find_dates_needing_rollup(self) -> list[CycleDate]:
        """Dates with an entry but a missing summary and/or status."""
        needing: list[CycleDate] = []
        for date in self.list_dates():
            if not self.exists(date, ArtifactKind.ENTRY):
                continue
            if not self.exists(date, ArtifactKind.SUMMARY) or not self.exists(
                date, ArtifactKind.STATUS
            ):
                needing.append(date)
        return needing

    def count_prompts(self, date: CycleDate, limit: int) -> int:
        """Number of prompts stored contiguously from 1, up to *limit*."""
        count = 0
        for number in range(1, limit + 1):
            if not self.exists(date, ArtifactKind.PROMPT, number):
                break
            count += 1
        return count


class FileContentStore(ContentStore):
    """Directory-per-date store rooted at *base_dir*."""

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    # ── Private helpers ──────────────────────────────────────────

    def _path(self, date: CycleDate, kind: ArtifactKind, index: int | None) -> Path:
        key = ArtifactKey(date=date, kind=kind, index=index)
        return self._base_dir / date.encode() / key.filename

    def ensure_directories(self) -> None:
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot create {self._base_dir}: {exc}") from exc

    # ── Operations ───────────────────────────────────────────────

    def exists(self, date: CycleDate, kind: ArtifactKind, index: int | None = None) -> bool:
        return self._path(date, kind, index).is_file()

    def read(self, date: CycleDate, kind: ArtifactKind, index: int | None = None) -> str | None:
        path = self._path(date, kind, index)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreUnavailable(f"Cannot read {path}: {exc}") from exc

    def write(
        self, date: CycleDate, kind: ArtifactKind, text: str, index: int | None = None
    ) -> None:
        path = self._path(date, kind, index)
        try:
            _atomic_write(path, text)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot write {path}: {exc}") from exc
        logger.debug("Wrote %s (%d chars)", path, len(text))

    def list_dates(self) -> list[CycleDate]:
        if not self._base_dir.is_dir():
            return []
        dates: list[CycleDate] = []
        try:
            children = list(self._base_dir.iterdir())
        except OSError as exc:
            raise StoreUnavailable(f"Cannot list {self._base_dir}: {exc}") from exc
        for child in children:
            if not child.is_dir() or len(child.name) != CODE_LENGTH:
                continue
            try:
                dates.append(CycleDate.decode(child.name))
            except (InvalidDateString, InvalidDateComponent):
                logger.debug("Ignoring non-date directory %s", child)
        return sorted(dates)


def _atomic_write(path: Path, text: str) -> None:
    """Write *text* to *path* via a temp file in the same directory."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
