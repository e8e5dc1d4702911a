"""Tests for config.py — TOML layering, env overrides and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from market_analyst.config import (
    AppConfig,
    KnowledgeConfig,
    PerformanceConfig,
    SchedulerConfig,
    load_config,
)

_ENV_VARS = (
    "MARKET_ANALYST_DATA_DIR",
    "MARKET_ANALYST_TIMEZONE",
    "MARKET_ANALYST_LOG_LEVEL",
    "MARKET_ANALYST_EXPORT_PATH",
    "MARKET_ANALYST_LLM_MODEL",
    "MARKET_ANALYST_DEBUG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_committed_defaults_load() -> None:
    cfg = load_config()
    assert isinstance(cfg, AppConfig)
    assert cfg.scheduler.timezone == "America/New_York"
    assert cfg.scheduler.guard_store == "memory"
    assert cfg.performance.review_batch_size == 15
    assert cfg.knowledge.consolidate_after_days == 7
    assert cfg.knowledge.prune_after_days == 30
    assert cfg.llm.analyst_name == "Neutron"
    assert cfg.debug is False


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


def test_partial_file_keeps_model_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / "cfg" / "default.toml", '[storage]\ndata_dir = "/var/analyst"\n')
    cfg = load_config(path)
    assert cfg.storage.performance_path == Path("/var/analyst/performance.json")
    assert cfg.performance == PerformanceConfig()


def test_local_toml_is_deep_merged(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "cfg" / "default.toml",
        "[performance]\nreview_batch_size = 15\nmin_weekly_calls = 2\n",
    )
    _write(tmp_path / "cfg" / "local.toml", "[performance]\nreview_batch_size = 5\n")
    cfg = load_config(path)
    assert cfg.performance.review_batch_size == 5
    assert cfg.performance.min_weekly_calls == 2


def test_env_overrides_win(tmp_path: Path, monkeypatch) -> None:
    path = _write(tmp_path / "cfg" / "default.toml", '[scheduler]\ntimezone = "America/New_York"\n')
    monkeypatch.setenv("MARKET_ANALYST_TIMEZONE", "Europe/London")
    monkeypatch.setenv("MARKET_ANALYST_LOG_LEVEL", "debug")
    monkeypatch.setenv("MARKET_ANALYST_EXPORT_PATH", "/shared/out.md")
    monkeypatch.setenv("MARKET_ANALYST_DEBUG", "true")

    cfg = load_config(path)

    assert cfg.scheduler.timezone == "Europe/London"
    assert cfg.logging.level == "DEBUG"
    assert cfg.export.snapshot_path == "/shared/out.md"
    assert cfg.debug is True


def test_project_debug_flag(tmp_path: Path) -> None:
    path = _write(tmp_path / "cfg" / "default.toml", "[project]\ndebug = true\n")
    assert load_config(path).debug is True


def test_unknown_timezone_rejected() -> None:
    with pytest.raises(ValidationError, match="Unknown timezone"):
        SchedulerConfig(timezone="Mars/Olympus_Mons")


def test_non_positive_poll_rejected() -> None:
    with pytest.raises(ValidationError):
        SchedulerConfig(poll_seconds=0)


def test_unknown_guard_store_rejected() -> None:
    with pytest.raises(ValidationError):
        SchedulerConfig(guard_store="redis")


def test_zero_capacity_rejected() -> None:
    with pytest.raises(ValidationError):
        PerformanceConfig(max_recommendations=0)


def test_config_is_frozen() -> None:
    cfg = KnowledgeConfig()
    with pytest.raises(ValidationError):
        cfg.prune_after_days = 1


def test_default_snapshot_path_is_outside_data_dir() -> None:
    for cfg in (AppConfig(), load_config()):
        snapshot = Path(cfg.export.snapshot_path)
        assert Path(cfg.storage.data_dir) not in snapshot.parents
