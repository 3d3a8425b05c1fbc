"""Tests for src/config.py: ContentOpsConfig, TOML loading, overrides."""

from pathlib import Path

import pytest

from contentops.config import (
    ContentOpsConfig,
    TaskSettings,
    VariantsConfig,
    load_config,
    merge_cli_overrides,
)

_ENV_VARS = (
    "GEMINI_API_KEY",
    "CONTENTOPS_MODEL",
    "CONTENTOPS_OUTPUT_DIR",
    "CONTENTOPS_GEMINI_TIMEOUT",
    "CONTENTOPS_TRASH_RETENTION_DAYS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(Path, "home", lambda: tmp_path / "home")


class TestDefaults:
    def test_sections(self):
        cfg = ContentOpsConfig()
        assert cfg.output.directory == "./contentops-data"
        assert cfg.gemini.model == "gemini-2.5-flash"
        assert cfg.gemini.timeout_seconds == 120
        assert cfg.context.excerpt_limit == 3000
        assert cfg.diff.max_cells == 4_000_000
        assert cfg.variants.trash_retention_days == 30

    def test_task_defaults(self):
        cfg = ContentOpsConfig()
        assert cfg.task_settings("analyze_materials").temperature == 0.3
        assert cfg.task_settings("extract_knowledge").max_output_tokens == 8192
        assert cfg.task_settings("categorize_knowledge").max_output_tokens == 1024
        assert cfg.task_settings("instagram_reels") == TaskSettings(model="gemini-2.5-flash")

    def test_retention_is_clamped(self):
        assert VariantsConfig(trash_retention_days=0).trash_retention_days == 1
        assert VariantsConfig(trash_retention_days=1000).trash_retention_days == 365

    def test_output_dir(self):
        assert ContentOpsConfig().output_dir == Path("./contentops-data")


class TestLoadConfig:
    def test_no_file(self):
        assert load_config() == ContentOpsConfig()

    def test_cwd_file(self, tmp_path: Path):
        (tmp_path / ".contentops.toml").write_text(
            '[gemini]\nmodel = "gemini-2.5-pro"\n\n'
            "[tasks.note]\ntemperature = 0.9\n",
            encoding="utf-8",
        )
        cfg = load_config()
        assert cfg.gemini.model == "gemini-2.5-pro"
        assert cfg.task_settings("note").temperature == 0.9
        assert cfg.task_settings("note").model == "gemini-2.5-pro"

    def test_explicit_path(self, tmp_path: Path):
        path = tmp_path / "custom.toml"
        path.write_text("[context]\nexcerpt_limit = 500\n", encoding="utf-8")
        assert load_config(path).context.excerpt_limit == 500

    def test_missing_explicit_path(self, tmp_path: Path):
        assert load_config(tmp_path / "nope.toml") == ContentOpsConfig()

    def test_global_config(self, tmp_path: Path):
        global_dir = tmp_path / "home" / ".config" / "contentops"
        global_dir.mkdir(parents=True)
        (global_dir / "config.toml").write_text("[diff]\nmax_cells = 10\n", encoding="utf-8")
        assert load_config().diff.max_cells == 10

    def test_invalid_toml_is_ignored(self, tmp_path: Path):
        (tmp_path / ".contentops.toml").write_text("not = [valid", encoding="utf-8")
        assert load_config() == ContentOpsConfig()


class TestEnvVars:
    def test_overrides(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("GEMINI_API_KEY", "AIzaTestKey")
        monkeypatch.setenv("CONTENTOPS_OUTPUT_DIR", "/data")
        monkeypatch.setenv("CONTENTOPS_GEMINI_TIMEOUT", "30")
        monkeypatch.setenv("CONTENTOPS_TRASH_RETENTION_DAYS", "7")

        cfg = load_config()
        assert cfg.gemini.api_key == "AIzaTestKey"
        assert cfg.output.directory == "/data"
        assert cfg.gemini.timeout_seconds == 30
        assert cfg.variants.trash_retention_days == 7

    def test_env_beats_toml(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        (tmp_path / ".contentops.toml").write_text(
            '[gemini]\nmodel = "from-toml"\n\n[tasks.line]\nmodel = "line-model"\n',
            encoding="utf-8",
        )
        monkeypatch.setenv("CONTENTOPS_MODEL", "from-env")

        cfg = load_config()
        assert cfg.gemini.model == "from-env"
        assert cfg.task_settings("line").model == "from-env"


class TestMergeCliOverrides:
    def test_only_set_values_apply(self):
        cfg = merge_cli_overrides(ContentOpsConfig(), model=None, timeout=15)
        assert cfg.gemini.model == "gemini-2.5-flash"
        assert cfg.gemini.timeout_seconds == 15

    def test_model_overrides_task_tables(self):
        base = ContentOpsConfig.model_validate({"tasks": {"note": {"model": "old"}}})
        cfg = merge_cli_overrides(base, model="cli-model", output_directory="/out")
        assert cfg.task_settings("note").model == "cli-model"
        assert cfg.output.directory == "/out"

    def test_excerpt_limit(self):
        assert merge_cli_overrides(ContentOpsConfig(), excerpt_limit=10).context.excerpt_limit == 10
