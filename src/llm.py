"""Text-generation backend.

Wraps Claude behind the two calls the scheduler needs:
``ensure_ready()`` and ``generate(prompt, max_tokens)``. Two transports:

1. Anthropic API (preferred — uses ANTHROPIC_API_KEY)
2. Subprocess ``claude -p`` (fallback, or forced with CYCLEJOURNAL_USE_CLI=1)
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import threading
from typing import Protocol

import anthropic

from cyclejournal.errors import BackendGenerationFailed, BackendUnavailable

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """What the scheduler needs from a generation backend."""

    def ensure_ready(self) -> None:
        """Connect/load if needed. Raises BackendUnavailable."""
        ...

    def generate(self, prompt: str, max_tokens: int) -> str:
        """Return generated text. Raises BackendUnavailable or BackendGenerationFailed."""
        ...


# ---------------------------------------------------------------------------
# Model name mapping
# ---------------------------------------------------------------------------

_MODEL_MAP: dict[str, str] = {
    "sonnet": "claude-sonnet-4-6",
    "haiku": "claude-haiku-4-5-20251001",
    "opus": "claude-opus-4-6",
}

_DEFAULT_MODEL = "claude-haiku-4-5-20251001"


def resolve_model(model: str | None) -> str:
    """Resolve a short model name to an API model ID."""
    if model is None:
        return _DEFAULT_MODEL
    return _MODEL_MAP.get(model, model)


def _use_cli() -> bool:
    return os.environ.get("CYCLEJOURNAL_USE_CLI", "").strip() == "1"


def _api_key() -> str:
    return os.environ.get("ANTHROPIC_API_KEY", "").strip()


# ---------------------------------------------------------------------------
# Claude backend
# ---------------------------------------------------------------------------


class ClaudeGenerator:
    """Claude via the Anthropic API, falling back to the ``claude`` CLI.

    Readiness is cached after the first successful check and reset
    whenever a generation call fails, so the next call re-checks.
    """

    def __init__(
        self,
        *,
        model: str | None = None,
        timeout: int = 120,
        temperature: float = 0.7,
    ) -> None:
        self._model = model
        self._timeout = timeout
        self._temperature = temperature
        self._ready = False
        self._lock = threading.Lock()
        self._client: anthropic.Anthropic | None = None

    @property
    def transport(self) -> str:
        if not _use_cli() and _api_key():
            return "api"
        return "cli"

    @property
    def is_ready(self) -> bool:
        return self._ready

    def ensure_ready(self) -> None:
        with self._lock:
            if self._ready:
                return
            if self.transport == "api":
                self._client = anthropic.Anthropic(api_key=_api_key(), timeout=self._timeout)
                logger.info("Generation backend: Anthropic API (%s)", resolve_model(self._model))
            else:
                if shutil.which("claude") is None:
                    raise BackendUnavailable(
                        "No ANTHROPIC_API_KEY set and Claude CLI not found on the PATH"
                    )
                logger.info("Generation backend: Claude CLI subprocess")
            self._ready = True

    def generate(self, prompt: str, max_tokens: int) -> str:
        self.ensure_ready()
        logger.debug(
            "Generating (%s, %d prompt chars, max_tokens=%d)",
            self.transport,
            len(prompt),
            max_tokens,
        )
        try:
            if self.transport == "api":
                return self._call_api(prompt, max_tokens)
            return self._call_subprocess(prompt)
        except (BackendUnavailable, BackendGenerationFailed):
            self._ready = False
            raise

    # ── Transports ───────────────────────────────────────────────

    def _call_api(self, prompt: str, max_tokens: int) -> str:
        client = self._client or anthropic.Anthropic(api_key=_api_key(), timeout=self._timeout)
        try:
            response = client.messages.create(
                model=resolve_model(self._model),
                max_tokens=max_tokens,
                temperature=self._temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except (anthropic.APIConnectionError, anthropic.AuthenticationError) as exc:
            raise BackendUnavailable(f"Anthropic API unreachable: {exc}") from exc
        except anthropic.APIError as exc:
            raise BackendGenerationFailed(f"Anthropic API failed: {exc}") from exc

        text_parts: list[str] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
        result = "".join(text_parts).strip()
        if not result:
            raise BackendGenerationFailed("Anthropic API returned an empty response")
        return result

    def _call_subprocess(self, prompt: str) -> str:
        cmd = ["claude", "-p"]
        if self._model:
            cmd.extend(["--model", self._model])

        # Filter CLAUDECODE env var to prevent recursive Claude invocations
        env = {k: v for k, v in os.environ.items() if k != "CLAUDECODE"}

        try:
            result = subprocess.run(
                cmd,
                input=prompt,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                env=env,
            )
        except FileNotFoundError as exc:
            raise BackendUnavailable("Claude CLI not found — is 'claude' on the PATH?") from exc
        except subprocess.TimeoutExpired as exc:
            raise BackendGenerationFailed(
                f"Claude CLI timed out after {self._timeout}s"
            ) from exc

        if result.returncode != 0:
            raise BackendGenerationFailed(
                f"Claude CLI failed (exit {result.returncode}): {result.stderr[:500]}"
            )
        output = result.stdout.strip()
        if not output:
            raise BackendGenerationFailed("Claude CLI returned an empty response")
        return output


# ---------------------------------------------------------------------------
# JSON output helpers
# ---------------------------------------------------------------------------

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences from LLM JSON output.

    Handles Claude's tendency to wrap JSON in ```json ... ``` blocks.
    """
    text = text.strip()
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        return text[start : end + 1]
    return text
