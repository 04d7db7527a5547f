"""Context aggregation — bounded, role-dependent history for prompts."""

from cyclejournal.context.models import ContextFragment, render_fragments
from cyclejournal.context.services import ContextAggregator

__all__ = [
    "ContextAggregator",
    "ContextFragment",
    "render_fragments",
]
