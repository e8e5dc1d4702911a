"""
Shared pytest fixtures for the Market Analyst test suite.

Provides:
  - ``FakeClock`` / ``clock``: a settable clock.  The default instant is
    Wednesday 2024-01-10 15:00 UTC (10:00 in New York).
  - ``app_config``: an ``AppConfig`` whose every path lives under ``tmp_path``.
  - ``rec_store``, ``knowledge_store``: stores bound to ``app_config``.
  - ``ScriptedGenerator`` / ``make_generator``: a fake text-generation
    collaborator that replays canned responses and records prompts.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional, Union

import pytest

from market_analyst.config import (
    AppConfig,
    ExportConfig,
    LLMConfig,
    SchedulerConfig,
    StorageConfig,
)
from market_analyst.knowledge.store import KnowledgeStore
from market_analyst.llm.client import CollaboratorError
from market_analyst.store.performance import RecommendationStore


# ── Clock ─────────────────────────────────────────────────────────────────────


class FakeClock:
    """Callable clock whose instant tests move by hand."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 10, 15, 0, tzinfo=timezone.utc))


# ── Config and stores ─────────────────────────────────────────────────────────


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    """Default config with all state redirected into ``tmp_path``."""
    return AppConfig(
        scheduler=SchedulerConfig(guard_file=str(tmp_path / "guards.json")),
        storage=StorageConfig(
            data_dir=str(tmp_path / "data"),
            knowledge_dir=str(tmp_path / "brain"),
        ),
        export=ExportConfig(snapshot_path=str(tmp_path / "shared" / "analyst-weekly.md")),
        llm=LLMConfig(system_prompt_path=None),
    )


@pytest.fixture
def rec_store(app_config: AppConfig, clock: FakeClock) -> RecommendationStore:
    return RecommendationStore.from_config(app_config, clock=clock)


@pytest.fixture
def knowledge_store(app_config: AppConfig) -> KnowledgeStore:
    return KnowledgeStore(Path(app_config.storage.knowledge_dir))


# ── Collaborator ──────────────────────────────────────────────────────────────


class ScriptedGenerator:
    """Fake ``TextGenerator`` replaying responses in order.

    A response that is an ``Exception`` instance is raised instead of
    returned.  When the script runs out the last entry repeats.
    """

    def __init__(self, responses: list[Union[str, Exception]]) -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def make_generator() -> Callable[..., ScriptedGenerator]:
    def _make(*responses: Union[str, Exception]) -> ScriptedGenerator:
        return ScriptedGenerator(list(responses) or [""])
    return _make


@pytest.fixture
def failing_generator() -> ScriptedGenerator:
    return ScriptedGenerator([CollaboratorError("upstream unavailable")])


def write_artifact(
    root: Path,
    name: str,
    content: str,
    modified_at: Optional[datetime] = None,
) -> Path:
    """Create a knowledge artifact with an explicit modification time."""
    root.mkdir(parents=True, exist_ok=True)
    path = root / name
    path.write_text(content, encoding="utf-8")
    if modified_at is not None:
        ts = modified_at.timestamp()
        os.utime(path, (ts, ts))
    return path


@pytest.fixture
def make_artifact() -> Callable[..., Path]:
    return write_artifact
