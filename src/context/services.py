"""Hierarchical rollup of journal history into prompt context.

The resolution depends on the target date's role:

======== =============================================================
yearly   the month-start entries (monthly reflections) of the previous
         year cycle
monthly  the week-start entries (weekly reflections) of the previous
         month
weekly   the raw entries of the 7 days ending at the target date
daily    the summaries of the 7 days ending at the target date
======== =============================================================

Each level reads what the level below it wrote, so context size stays
bounded however old the journal is. Missing artifacts are skipped.
"""

from __future__ import annotations

import logging

from cyclejournal.context.models import ContextFragment
from cyclejournal.cycle import MONTHS_PER_YEAR, WEEKS_PER_MONTH, CycleDate, DateRole
from cyclejournal.store import ArtifactKind, ContentStore

logger = logging.getLogger(__name__)


class ContextAggregator:
    """Builds chronologically ordered context fragments from a store."""

    def __init__(self, store: ContentStore) -> None:
        self._store = store

    def fragments_for(self, target: CycleDate) -> list[ContextFragment]:
        """Context fragments for *target*, oldest first."""
        role = target.role
        if role == DateRole.YEARLY:
            fragments = self._yearly(target)
        elif role == DateRole.MONTHLY:
            fragments = self._monthly(target)
        elif role == DateRole.WEEKLY:
            fragments = self._past_week(target, ArtifactKind.ENTRY)
        else:
            fragments = self._past_week(target, ArtifactKind.SUMMARY)
        logger.debug("Built %d %s context fragments for %s", len(fragments), role, target)
        return fragments

    def get_context_for_prompt(self, target: CycleDate) -> list[str]:
        """Rendered fragments for *target*, oldest first."""
        return [f.render() for f in self.fragments_for(target)]

    # ── Levels ───────────────────────────────────────────────────

    def _yearly(self, target: CycleDate) -> list[ContextFragment]:
        year_cycle = target.previous_year_cycle()
        fragments: list[ContextFragment] = []
        for month in range(MONTHS_PER_YEAR):
            source = CycleDate.new(year_cycle, month, 0, 0)
            fragment = self._fragment(
                source, ArtifactKind.ENTRY, f"Month {month} reflection"
            )
            if fragment is not None:
                fragments.append(fragment)
        return fragments

    def _monthly(self, target: CycleDate) -> list[ContextFragment]:
        year_cycle, month = target.previous_month()
        fragments: list[ContextFragment] = []
        for week in range(WEEKS_PER_MONTH):
            source = CycleDate.new(year_cycle, month, week, 0)
            fragment = self._fragment(source, ArtifactKind.ENTRY, f"Week {week} reflection")
            if fragment is not None:
                fragments.append(fragment)
        return fragments

    def _past_week(self, target: CycleDate, kind: ArtifactKind) -> list[ContextFragment]:
        fragments: list[ContextFragment] = []
        seen: set[CycleDate] = set()
        for source in target.previous_week():
            # previous_week() repeats the floor date near 00000
            if source in seen:
                continue
            seen.add(source)
            fragment = self._fragment(source, kind, f"Day {source}")
            if fragment is not None:
                fragments.append(fragment)
        return fragments

    def _fragment(
        self, source: CycleDate, kind: ArtifactKind, label: str
    ) -> ContextFragment | None:
        text = self._store.read(source, kind)
        if text is None or not text.strip():
            return None
        return ContextFragment(source_date=source, source_kind=kind, label=label, text=text)
