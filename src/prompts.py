"""Prompt templates for summary/status and reflection-prompt generation.

Templates live in ``prompts.json`` inside the journal directory so they
can be tuned without touching code. A missing file is created with the
defaults below.
"""

from __future__ import annotations

import json
import logging
import re
from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

PROMPTS_FILENAME = "prompts.json"

_SUMMARY_PLACEHOLDER_RE = re.compile(r"\{(date|status|entry_content)\}")


class PromptType(StrEnum):
    """Template family, chosen from the target date's role in the cycle."""

    DAILY = "daily"
    WEEKLY_REFLECTION = "weekly_reflection"
    MONTHLY_REFLECTION = "monthly_reflection"
    YEARLY_REFLECTION = "yearly_reflection"

    @property
    def display_name(self) -> str:
        return {
            PromptType.DAILY: "Daily",
            PromptType.WEEKLY_REFLECTION: "Weekly Reflection",
            PromptType.MONTHLY_REFLECTION: "Monthly Reflection",
            PromptType.YEARLY_REFLECTION: "Yearly Reflection",
        }[self]


SUMMARY_TEMPLATE = """\
You maintain a private journal's memory. Read today's entry and the \
writer's current status, then respond with ONLY valid JSON (no markdown \
fences, no commentary) in this exact shape:
{
  "summary": "2-3 sentences on the key emotions, events, and insights of the entry",
  "status": "the updated current status, or null if nothing changed"
}

The status is a short running description of what is going on in the \
writer's life right now: ongoing projects, concerns, relationships, and \
plans. Rewrite it in full when the entry changes it; keep anything that \
is still true.

CURRENT STATUS:
{status}

JOURNAL ENTRY ({date}):
{entry_content}"""


class PromptVariations(BaseModel):
    """Suffixes that steer prompts 2, 3, and beyond away from prompt 1."""

    second: str = "\n\nCreate a different perspective or angle for this prompt:"
    third: str = "\n\nCreate a third unique approach to this reflection:"
    additional: str = (
        "\n\nCreate another unique and creative approach to this reflection "
        "(variation #{number}):"
    )


class PromptTemplates(BaseModel):
    """All generation templates, loadable from ``prompts.json``."""

    summary_generation: str = SUMMARY_TEMPLATE
    daily_prompt: str = (
        "Based on the following journal summaries from the past week, create an "
        "insightful and thought-provoking journal prompt for today. The prompt should "
        "help the person reflect on patterns, growth, or connections to recent "
        "experiences:\n\n{context}\n\nToday's journal prompt:"
    )
    weekly_reflection: str = (
        "Based on the following journal entries from the past week, create a reflective "
        "prompt that encourages deeper weekly reflection on themes, patterns, growth, "
        "and lessons learned:\n\n{context}\n\nWeekly reflection prompt:"
    )
    monthly_reflection: str = (
        "Based on the following weekly reflections from the past month, create a "
        "comprehensive monthly reflection prompt that explores broader patterns, "
        "achievements, challenges, and personal growth:\n\n{context}\n\n"
        "Monthly reflection prompt:"
    )
    yearly_reflection: str = (
        "Based on the following monthly reflections from the past year, create a "
        "profound yearly reflection prompt that encourages deep introspection on "
        "personal transformation, major themes, life lessons, and future "
        "aspirations:\n\n{context}\n\nYearly reflection prompt:"
    )
    variations: PromptVariations = Field(default_factory=PromptVariations)

    def summary_prompt(self, entry_content: str, status: str, date_code: str) -> str:
        """Fill the joint summary+status template."""
        values = {"date": date_code, "status": status, "entry_content": entry_content}
        return _SUMMARY_PLACEHOLDER_RE.sub(
            lambda match: values[match.group(1)], self.summary_generation
        )

    def prompt_template(self, prompt_type: PromptType, context: str) -> str:
        template = {
            PromptType.DAILY: self.daily_prompt,
            PromptType.WEEKLY_REFLECTION: self.weekly_reflection,
            PromptType.MONTHLY_REFLECTION: self.monthly_reflection,
            PromptType.YEARLY_REFLECTION: self.yearly_reflection,
        }[prompt_type]
        return template.replace("{context}", context)

    def variation_suffix(self, prompt_number: int) -> str:
        if prompt_number <= 1:
            return ""
        if prompt_number == 2:
            return self.variations.second
        if prompt_number == 3:
            return self.variations.third
        return self.variations.additional.replace("{number}", str(prompt_number))

    def build_prompt(self, prompt_type: PromptType, context: str, prompt_number: int) -> str:
        """Full backend prompt for prompt number *prompt_number*."""
        return self.prompt_template(prompt_type, context) + self.variation_suffix(prompt_number)


def load_prompt_templates(journal_dir: Path) -> PromptTemplates:
    """Load ``prompts.json``, creating it with defaults when missing.

    A corrupt file is logged and the defaults are used for this run
    (the file is left untouched so the user can fix it).
    """
    path = journal_dir / PROMPTS_FILENAME
    if not path.exists():
        templates = PromptTemplates()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(templates.model_dump_json(indent=2), encoding="utf-8")
            logger.info("Created default %s", path)
        except OSError as exc:
            logger.warning("Could not write default %s: %s", path, exc)
        return templates
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        templates = PromptTemplates.model_validate(data)
    except (json.JSONDecodeError, ValidationError, OSError) as exc:
        logger.warning("Invalid %s, using default templates: %s", path, exc)
        return PromptTemplates()
    logger.info("Loaded prompt templates from %s", path)
    return templates
