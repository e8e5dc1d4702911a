"""
Calendar-day, once-only execution guard for named recurring tasks.

A task counts as "run today" when ``mark_run(name)`` was called while
``today()`` returned the current local calendar date.  When the local date
advances, every guard lapses on its own; nothing has to be reset.

Backing stores
--------------
  - ``InMemoryGuardStore`` (default): process-lifetime only.  A restart
    clears every guard, so a task whose window is still open after a
    restart can fire a second time that day.  This is a known limitation
    of single-process deployment, not a bug.
  - ``JsonGuardStore``: persists the name → date map to a JSON file so
    guards survive restarts on one host.  Not safe across processes.

No locking is needed: the scheduler checks and marks synchronously, before
a job's asynchronous body begins.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Protocol

from market_analyst.config import AppConfig
from market_analyst.utils.time_utils import Clock, local_today, utcnow

logger = logging.getLogger(__name__)


class GuardStore(Protocol):
    """Persistence for the task name → last-run date map."""

    def get(self, name: str) -> Optional[str]: ...

    def set(self, name: str, day: str) -> None: ...


class InMemoryGuardStore:
    def __init__(self) -> None:
        self._runs: dict[str, str] = {}

    def get(self, name: str) -> Optional[str]:
        return self._runs.get(name)

    def set(self, name: str, day: str) -> None:
        self._runs[name] = day


class JsonGuardStore:
    """File-backed guard map.  Unreadable files are treated as empty."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Could not read guard file %s: %s", self.path, exc)
            return {}
        return {str(k): str(v) for k, v in data.items()} if isinstance(data, dict) else {}

    def get(self, name: str) -> Optional[str]:
        return self._read().get(name)

    def set(self, name: str, day: str) -> None:
        runs = self._read()
        runs[name] = day
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(runs, indent=2), encoding="utf-8")
        except OSError as exc:
            logger.error("Could not write guard file %s: %s", self.path, exc)


class TimeGate:
    """Once-per-local-day guard.

    Args:
        timezone: IANA zone defining the calendar day.
        clock:    Source of the current instant.
        store:    Guard persistence; in-memory when omitted.
    """

    def __init__(
        self,
        timezone: str = "America/New_York",
        clock: Clock = utcnow,
        store: Optional[GuardStore] = None,
    ) -> None:
        self.timezone = timezone
        self.clock = clock
        self.store: GuardStore = store if store is not None else InMemoryGuardStore()

    def today(self) -> str:
        """Current calendar date in the gate's timezone, ``YYYY-MM-DD``."""
        return local_today(self.clock, self.timezone).isoformat()

    def has_run(self, name: str) -> bool:
        return self.store.get(name) == self.today()

    def mark_run(self, name: str) -> None:
        self.store.set(name, self.today())

    @classmethod
    def from_config(cls, config: AppConfig, clock: Clock = utcnow) -> "TimeGate":
        store: GuardStore = (
            JsonGuardStore(Path(config.scheduler.guard_file))
            if config.scheduler.guard_store == "json"
            else InMemoryGuardStore()
        )
        return cls(config.scheduler.timezone, clock=clock, store=store)
