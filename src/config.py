"""Unified configuration loaded from .cyclejournal.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from cyclejournal.clock import parse_schedule_time
from cyclejournal.cycle import DEFAULT_EPOCH

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".cyclejournal.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG = Path.home() / ".config" / "cyclejournal" / "config.toml"


class JournalSectionConfig(BaseModel):
    """[journal] section."""

    directory: str = "journal_entries"
    processing_time: str = "03:00"
    prompt_generation_time: str = "06:00"
    max_prompts_per_day: int = Field(default=3, ge=1)

    @field_validator("processing_time", "prompt_generation_time")
    @classmethod
    def _check_time(cls, value: str) -> str:
        parse_schedule_time(value)
        return value.strip()

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()


class LLMSectionConfig(BaseModel):
    """[llm] section."""

    model: str | None = None
    timeout: int = 120
    temperature: float = 0.7
    summary_max_tokens: int = 400
    prompt_max_tokens: int = 150


class CalendarSectionConfig(BaseModel):
    """[calendar] section."""

    epoch: date = DEFAULT_EPOCH


class CycleJournalConfig(BaseModel):
    """Top-level configuration model."""

    journal: JournalSectionConfig = Field(default_factory=JournalSectionConfig)
    llm: LLMSectionConfig = Field(default_factory=LLMSectionConfig)
    calendar: CalendarSectionConfig = Field(default_factory=CalendarSectionConfig)


def load_config(path: str | Path | None = None) -> CycleJournalConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .cyclejournal.toml in CWD
    3. ~/.config/cyclejournal/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged CycleJournalConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG.exists():
            data = _load_toml(GLOBAL_CONFIG)
            logger.info("Loaded config from %s", GLOBAL_CONFIG)

    config = CycleJournalConfig.model_validate(data) if data else CycleJournalConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: CycleJournalConfig, **cli_kwargs: object) -> CycleJournalConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "directory": ("journal", "directory"),
        "prompt_time": ("journal", "prompt_generation_time"),
        "processing_time": ("journal", "processing_time"),
        "max_prompts": ("journal", "max_prompts_per_day"),
        "model": ("llm", "model"),
        "timeout": ("llm", "timeout"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value

    return CycleJournalConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: CycleJournalConfig) -> CycleJournalConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "CYCLEJOURNAL_DIR": ("journal", "directory"),
        "CYCLEJOURNAL_PROMPT_TIME": ("journal", "prompt_generation_time"),
        "CYCLEJOURNAL_PROCESSING_TIME": ("journal", "processing_time"),
        "CYCLEJOURNAL_MODEL": ("llm", "model"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    max_raw = os.environ.get("CYCLEJOURNAL_MAX_PROMPTS")
    if max_raw is not None:
        try:
            data["journal"]["max_prompts_per_day"] = int(max_raw)
        except ValueError:
            logger.warning("Ignoring non-integer CYCLEJOURNAL_MAX_PROMPTS=%r", max_raw)

    return CycleJournalConfig.model_validate(data)
