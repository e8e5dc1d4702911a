"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``MARKET_ANALYST_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The scheduler, every job and every CLI command receive an ``AppConfig``
instance — never raw dicts or individual env var lookups scattered through
the codebase.  The one exception is the collaborator API key, which is read
from ``ANTHROPIC_API_KEY`` at client construction and never stored in TOML.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class SchedulerConfig(BaseModel):
    """Poll loop and calendar settings."""

    model_config = ConfigDict(frozen=True)

    timezone: str = "America/New_York"
    poll_seconds: float = 60.0
    guard_store: str = "memory"          # "memory" | "json"
    guard_file: str = "data/scheduler-guards.json"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone '{v}'.") from exc
        return v

    @field_validator("poll_seconds")
    @classmethod
    def validate_poll(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"poll_seconds must be positive, got {v}.")
        return v

    @field_validator("guard_store")
    @classmethod
    def validate_guard_store(cls, v: str) -> str:
        if v not in {"memory", "json"}:
            raise ValueError(f"guard_store must be 'memory' or 'json', got '{v}'.")
        return v


class StorageConfig(BaseModel):
    """Filesystem locations of the persisted documents and knowledge store."""

    model_config = ConfigDict(frozen=True)

    data_dir: str = "data"
    performance_file: str = "performance.json"
    profile_file: str = "investor-profile.json"
    watchlist_file: str = "watchlist.json"
    knowledge_dir: str = "data/brain"

    @property
    def performance_path(self) -> Path:
        return Path(self.data_dir) / self.performance_file

    @property
    def profile_path(self) -> Path:
        return Path(self.data_dir) / self.profile_file

    @property
    def watchlist_path(self) -> Path:
        return Path(self.data_dir) / self.watchlist_file


class PerformanceConfig(BaseModel):
    """Ledger capacities and review batch sizing."""

    model_config = ConfigDict(frozen=True)

    max_recommendations: int = 200
    max_weekly_scores: int = 52
    max_strategy_notes: int = 30
    review_batch_size: int = 15
    min_weekly_calls: int = 2
    weekly_window_days: int = 7
    scan_confidence: int = 50

    @field_validator(
        "max_recommendations", "max_weekly_scores", "max_strategy_notes",
        "review_batch_size", "weekly_window_days",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Capacities must be >= 1, got {v}.")
        return v

    @field_validator("scan_confidence")
    @classmethod
    def validate_confidence(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"scan_confidence must be in [0, 100], got {v}.")
        return v


class KnowledgeConfig(BaseModel):
    """Retention rules for the knowledge store sweeps."""

    model_config = ConfigDict(frozen=True)

    daily_prefixes: list[str] = ["morning-brief-", "eod-recap-", "scan-"]
    analysis_prefixes: list[str] = ["analysis-", "options-", "sentiment-"]
    consolidate_after_days: int = 7
    prune_after_days: int = 30
    excerpt_chars: int = 500
    summary_prefix: str = "weekly-summary-"
    context_files: int = 8
    context_chars: int = 1500


class ExportConfig(BaseModel):
    """Read-only snapshot written for an external consumer."""

    model_config = ConfigDict(frozen=True)

    snapshot_path: str = "shared/analyst-weekly.md"


class LLMConfig(BaseModel):
    """Text-generation collaborator settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://api.anthropic.com"
    model: str = "claude-sonnet-4-5-20250929"
    max_tokens: int = 4096
    timeout_seconds: float = 300.0
    api_version: str = "2023-06-01"
    system_prompt_path: Optional[str] = "config/persona.md"
    analyst_name: str = "Neutron"


class InvestorConfig(BaseModel):
    """The primary investor the analyst adapts to."""

    model_config = ConfigDict(frozen=True)

    username: str = "primary-investor"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/market-analyst.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    Constructed by ``load_config()`` which merges TOML + .env + environment.
    """

    model_config = ConfigDict(frozen=True)

    scheduler: SchedulerConfig = SchedulerConfig()
    storage: StorageConfig = StorageConfig()
    performance: PerformanceConfig = PerformanceConfig()
    knowledge: KnowledgeConfig = KnowledgeConfig()
    export: ExportConfig = ExportConfig()
    llm: LLMConfig = LLMConfig()
    investor: InvestorConfig = InvestorConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply MARKET_ANALYST_* env vars to the raw config dict.

    Supported overrides:
      MARKET_ANALYST_DATA_DIR     → raw["storage"]["data_dir"]
      MARKET_ANALYST_TIMEZONE     → raw["scheduler"]["timezone"]
      MARKET_ANALYST_LOG_LEVEL    → raw["logging"]["level"]
      MARKET_ANALYST_EXPORT_PATH  → raw["export"]["snapshot_path"]
      MARKET_ANALYST_LLM_MODEL    → raw["llm"]["model"]
      MARKET_ANALYST_DEBUG        → raw["debug"]
    """
    if data_dir := os.environ.get("MARKET_ANALYST_DATA_DIR"):
        raw.setdefault("storage", {})["data_dir"] = data_dir

    if tz := os.environ.get("MARKET_ANALYST_TIMEZONE"):
        raw.setdefault("scheduler", {})["timezone"] = tz

    if log_level := os.environ.get("MARKET_ANALYST_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if export_path := os.environ.get("MARKET_ANALYST_EXPORT_PATH"):
        raw.setdefault("export", {})["snapshot_path"] = export_path

    if model := os.environ.get("MARKET_ANALYST_LLM_MODEL"):
        raw.setdefault("llm", {})["model"] = model

    if debug := os.environ.get("MARKET_ANALYST_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        scheduler=SchedulerConfig(**raw.get("scheduler", {})),
        storage=StorageConfig(**raw.get("storage", {})),
        performance=PerformanceConfig(**raw.get("performance", {})),
        knowledge=KnowledgeConfig(**raw.get("knowledge", {})),
        export=ExportConfig(**raw.get("export", {})),
        llm=LLMConfig(**raw.get("llm", {})),
        investor=InvestorConfig(**raw.get("investor", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
