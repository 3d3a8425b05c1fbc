"""Unified configuration loaded from .contentops.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".contentops.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "contentops",
]

DEFAULT_MODEL = "gemini-2.5-flash"


class OutputConfig(BaseModel):
    """[output] section."""

    directory: str = "./contentops-data"


class GeminiConfig(BaseModel):
    """[gemini] section."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout_seconds: int = 120


class ContextConfig(BaseModel):
    """[context] section."""

    excerpt_limit: int = 3000


class DiffConfig(BaseModel):
    """[diff] section."""

    max_cells: int = 4_000_000


class VariantsConfig(BaseModel):
    """[variants] section."""

    trash_retention_days: int = 30

    @field_validator("trash_retention_days")
    @classmethod
    def _clamp_retention(cls, value: int) -> int:
        return max(1, min(365, value))


class TaskSettings(BaseModel):
    """Model parameters for one task kind ([tasks.<kind>] table)."""

    model: str | None = None
    temperature: float = 0.7
    max_output_tokens: int = 4096


# Per-kind defaults; channel kinds not listed here use TaskSettings().
DEFAULT_TASK_SETTINGS: dict[str, TaskSettings] = {
    "analyze_materials": TaskSettings(temperature=0.3, max_output_tokens=2048),
    "extract_knowledge": TaskSettings(temperature=0.5, max_output_tokens=8192),
    "proofread_text": TaskSettings(temperature=0.2, max_output_tokens=4096),
    "categorize_knowledge": TaskSettings(temperature=0.2, max_output_tokens=1024),
}


class ContentOpsConfig(BaseModel):
    """Top-level configuration model for the generation pipeline."""

    output: OutputConfig = Field(default_factory=OutputConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    variants: VariantsConfig = Field(default_factory=VariantsConfig)
    tasks: dict[str, TaskSettings] = Field(default_factory=dict)

    def task_settings(self, kind: str) -> TaskSettings:
        """Resolve settings for a task kind.

        Explicit ``[tasks.<kind>]`` tables win over built-in defaults.  A
        missing model falls back to ``[gemini] model``.
        """
        base = self.tasks.get(kind) or DEFAULT_TASK_SETTINGS.get(kind) or TaskSettings()
        return base.model_copy(update={"model": base.model or self.gemini.model})

    @property
    def output_dir(self) -> Path:
        return Path(self.output.directory)


def load_config(path: str | Path | None = None) -> ContentOpsConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .contentops.toml in CWD
    3. ~/.config/contentops/.contentops.toml
    4. ~/.config/contentops/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged ContentOpsConfig.
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
        global_config = Path.home() / ".config" / "contentops" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = ContentOpsConfig.model_validate(data) if data else ContentOpsConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: ContentOpsConfig, **cli_kwargs: object) -> ContentOpsConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "output_directory": ("output", "directory"),
        "model": ("gemini", "model"),
        "timeout": ("gemini", "timeout_seconds"),
        "excerpt_limit": ("context", "excerpt_limit"),
    }

    for key, value in cli_kwargs.items():
        if value is None:
            continue
        if key in mapping:
            section, field = mapping[key]
            data[section][field] = value
        # Global model overrides every per-task table too
        if key == "model":
            for settings in data["tasks"].values():
                settings["model"] = value

    return ContentOpsConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: ContentOpsConfig) -> ContentOpsConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "GEMINI_API_KEY": ("gemini", "api_key"),
        "CONTENTOPS_OUTPUT_DIR": ("output", "directory"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    timeout_raw = os.environ.get("CONTENTOPS_GEMINI_TIMEOUT")
    if timeout_raw is not None:
        data["gemini"]["timeout_seconds"] = int(timeout_raw)

    retention_raw = os.environ.get("CONTENTOPS_TRASH_RETENTION_DAYS")
    if retention_raw is not None:
        data["variants"]["trash_retention_days"] = int(retention_raw)

    # Global model env var overrides all sections
    global_model = os.environ.get("CONTENTOPS_MODEL")
    if global_model:
        data["gemini"]["model"] = global_model
        for settings in data["tasks"].values():
            settings["model"] = global_model

    return ContentOpsConfig.model_validate(data)
