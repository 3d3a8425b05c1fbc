"""Shared LLM calling utilities.

Centralizes every Gemini invocation behind :class:`GeminiBackend`.  The
backend decides once, at construction, whether credentials exist; when
they don't, no network call is ever attempted.  Callers route both
failure modes to a deterministic fallback, so this module never retries.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import TYPE_CHECKING, Any

from google import genai
from google.genai import types

if TYPE_CHECKING:
    from contentops.config import ContentOpsConfig

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
HEALTH_CHECK_MODEL = "gemini-2.0-flash"


class LLMError(Exception):
    """Base error for LLM calls."""


class BackendUnconfiguredError(LLMError):
    """Raised when no API key is configured; no call was attempted."""


class GenerationCallError(LLMError):
    """Raised when a configured call fails or returns unusable JSON.

    ``str(exc)`` carries the underlying error message verbatim.
    """


class GeminiBackend:
    """Gemini JSON generation via the google-genai SDK."""

    def __init__(self, api_key: str = "", *, timeout: int = 120) -> None:
        self._api_key = api_key.strip()
        self._timeout = timeout
        self._client: genai.Client | None = None
        self.is_configured = bool(self._api_key)

    @classmethod
    def from_env(cls, *, timeout: int = 120) -> GeminiBackend:
        return cls(os.environ.get("GEMINI_API_KEY", ""), timeout=timeout)

    @classmethod
    def from_config(cls, config: ContentOpsConfig) -> GeminiBackend:
        return cls(config.gemini.api_key, timeout=config.gemini.timeout_seconds)

    @property
    def key_preview(self) -> str:
        """Masked API key for diagnostics."""
        key = self._api_key
        if len(key) > 4:
            return f"{key[:4]}...{key[-2:]}"
        if key:
            return "***"
        return "(not set)"

    def _get_client(self) -> genai.Client:
        """Lazy-create and cache the genai Client."""
        if self._client is None:
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=self._timeout * 1000),
            )
        return self._client

    def generate_text(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
        json_mode: bool = False,
        label: str = "generation",
    ) -> str:
        """Run one generate_content call and return the response text.

        Raises:
            BackendUnconfiguredError: No API key; nothing was sent.
            GenerationCallError: SDK, HTTP or timeout failure, or an empty
                response.
        """
        if not self.is_configured:
            raise BackendUnconfiguredError("GEMINI_API_KEY is not set")

        resolved_model = model or DEFAULT_MODEL
        config_kwargs: dict[str, Any] = {
            "temperature": temperature,
            "max_output_tokens": max_output_tokens,
        }
        if json_mode:
            config_kwargs["response_mime_type"] = "application/json"

        logger.debug("Calling Gemini model=%s (%s)", resolved_model, label)

        try:
            response = self._get_client().models.generate_content(
                model=resolved_model,
                contents=prompt,
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except Exception as exc:
            raise GenerationCallError(str(exc)) from exc

        text = getattr(response, "text", None)
        if not text or not text.strip():
            raise GenerationCallError(f"Unexpected Gemini response structure (label={label})")
        return text.strip()

    def generate_json(
        self,
        prompt: str,
        *,
        model: str | None = None,
        temperature: float = 0.7,
        max_output_tokens: int = 4096,
        label: str = "generation",
    ) -> dict[str, Any]:
        """Run one call in JSON mode and parse the response as an object.

        Raises:
            BackendUnconfiguredError: No API key; nothing was sent.
            GenerationCallError: Call failure, unparseable JSON, or JSON
                that is not an object.
        """
        text = self.generate_text(
            prompt,
            model=model,
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            json_mode=True,
            label=label,
        )
        try:
            parsed = json.loads(strip_json_fences(text))
        except json.JSONDecodeError as exc:
            raise GenerationCallError(str(exc)) from exc
        if not isinstance(parsed, dict):
            raise GenerationCallError(
                f"Expected a JSON object, got {type(parsed).__name__} (label={label})"
            )
        return parsed

    def check_health(self) -> dict[str, Any]:
        """Probe the API with a lightweight model lookup."""
        status = "no_api_key"
        error = ""
        if self.is_configured:
            try:
                self._get_client().models.get(model=HEALTH_CHECK_MODEL)
                status = "connected"
            except Exception as exc:
                status = "error"
                error = str(exc)[:200]
        report: dict[str, Any] = {
            "is_available": self.is_configured,
            "key_preview": self.key_preview,
            "status": status,
        }
        if error:
            report["error"] = error
        return report


# ---------------------------------------------------------------------------
# JSON output helpers
# ---------------------------------------------------------------------------

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def strip_json_fences(text: str) -> str:
    """Strip markdown code fences from LLM JSON output.

    Handles the model's tendency to wrap JSON in ```json ... ``` blocks
    even in JSON mode.
    """
    text = text.strip()
    match = _JSON_FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    # Try to find raw JSON; whichever delimiter appears first wins
    brace_start = text.find("{")
    bracket_start = text.find("[")

    candidates: list[tuple[int, str, str]] = []
    if brace_start != -1:
        candidates.append((brace_start, "{", "}"))
    if bracket_start != -1:
        candidates.append((bracket_start, "[", "]"))

    # Earliest delimiter wins
    candidates.sort()

    for _pos, start_char, end_char in candidates:
        start = text.find(start_char)
        end = text.rfind(end_char)
        if start != -1 and end > start:
            return text[start : end + 1]

    return text
