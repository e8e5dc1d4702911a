"""Poll-loop scheduler for the analyst's recurring jobs.

No external scheduler library is required: an asyncio loop wakes every
``poll_seconds`` and checks the local wall clock against a fixed table of
trigger windows.

Typical usage via the CLI::

    market-analyst start-scheduler

Or import directly::

    from market_analyst.scheduler import TaskScheduler
    scheduler = TaskScheduler(gate, jobs.registry(), timezone="America/New_York")
    asyncio.run(scheduler.run_forever())   # blocks until Ctrl-C / SIGTERM

Trigger windows (local time, minute ranges inclusive):

  morning-scan        Mon-Fri  08:30-08:35
  eod-scan            Mon-Fri  16:30-16:35
  nightly-review      Mon-Fri  20:00-20:05
  weekly-review       Fri      20:30-20:35
  weekly-maintenance  Sat      09:00-09:05

A window fires at most once per local calendar day.  The ``TimeGate`` is
checked and marked synchronously inside ``tick()``, before the job's
coroutine is scheduled, so a job that is still running (or one that failed)
is never re-dispatched by a later tick inside the same window.  Each job
runs as its own asyncio task; a failure in one job is logged and does not
stop the loop or other jobs.
"""

from __future__ import annotations

import asyncio
import logging
import platform
import signal
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Mapping, Optional

from market_analyst.gate import TimeGate
from market_analyst.utils.time_utils import Clock, local_now, utcnow

log = logging.getLogger(__name__)

JobFn = Callable[[], Awaitable[object]]

WEEKDAYS = frozenset({0, 1, 2, 3, 4})
FRIDAY = frozenset({4})
SATURDAY = frozenset({5})


# ── Trigger windows ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TriggerWindow:
    """A daily time window on selected weekdays.

    Attributes:
        name:         Job name; also the ``TimeGate`` key.
        weekdays:     ``datetime.weekday()`` values (Monday = 0).
        hour:         Local hour of the window.
        start_minute: First minute of the window (inclusive).
        end_minute:   Last minute of the window (inclusive).
    """

    name:         str
    weekdays:     frozenset[int]
    hour:         int
    start_minute: int
    end_minute:   int

    def matches(self, local: datetime) -> bool:
        return (
            local.weekday() in self.weekdays
            and local.hour == self.hour
            and self.start_minute <= local.minute <= self.end_minute
        )


DEFAULT_WINDOWS: tuple[TriggerWindow, ...] = (
    TriggerWindow("morning-scan",       WEEKDAYS, 8,  30, 35),
    TriggerWindow("eod-scan",           WEEKDAYS, 16, 30, 35),
    TriggerWindow("nightly-review",     WEEKDAYS, 20, 0,  5),
    TriggerWindow("weekly-review",      FRIDAY,   20, 30, 35),
    TriggerWindow("weekly-maintenance", SATURDAY, 9,  0,  5),
)


# ── Scheduler ─────────────────────────────────────────────────────────────────


class TaskScheduler:
    """Dispatches jobs whose trigger window is open and not yet run today.

    Parameters
    ----------
    gate:
        Once-per-day guard.  Should share ``clock`` and ``timezone`` with
        the scheduler so "today" agrees on both sides.
    jobs:
        Job coroutine functions keyed by window name.  Windows without a
        registered job are ignored.
    timezone:
        IANA zone the windows are expressed in.
    clock:
        Source of the current instant.
    poll_seconds:
        Delay between ticks in ``run_forever()``.
    windows:
        Trigger table; ``DEFAULT_WINDOWS`` when omitted.
    """

    def __init__(
        self,
        gate: TimeGate,
        jobs: Mapping[str, JobFn],
        timezone: str = "America/New_York",
        clock: Clock = utcnow,
        poll_seconds: float = 60.0,
        windows: tuple[TriggerWindow, ...] = DEFAULT_WINDOWS,
    ) -> None:
        self.gate = gate
        self.jobs = dict(jobs)
        self.timezone = timezone
        self.clock = clock
        self.poll_seconds = poll_seconds
        self.windows = windows
        self._tasks: set[asyncio.Task] = set()
        self._stop = asyncio.Event()

        missing = [w.name for w in windows if w.name not in self.jobs]
        if missing:
            log.warning("No job registered for window(s): %s", ", ".join(missing))

    # ── Dispatch ──────────────────────────────────────────────────────────────

    def due(self, now: Optional[datetime] = None) -> list[str]:
        """Names of windows open at ``now`` (default: the clock's instant)."""
        local = local_now((lambda: now) if now is not None else self.clock, self.timezone)
        return [w.name for w in self.windows if w.matches(local) and w.name in self.jobs]

    def tick(self, now: Optional[datetime] = None) -> list[str]:
        """Evaluate every window once and dispatch what is due.

        Must be called from inside a running event loop.  The gate is marked
        before each job's task is created.

        Returns:
            Names of the jobs dispatched by this tick.
        """
        dispatched: list[str] = []
        for name in self.due(now):
            if self.gate.has_run(name):
                continue
            self.gate.mark_run(name)
            task = asyncio.create_task(self._run_job(name), name=name)
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            dispatched.append(name)
        return dispatched

    async def _run_job(self, name: str) -> None:
        log.info("[%s] Starting", name, extra={"job": name})
        try:
            await self.jobs[name]()
        except Exception as exc:
            log.error("[%s] Failed: %s", name, exc, exc_info=True, extra={"job": name})
            return
        log.info("[%s] Completed", name, extra={"job": name})

    async def drain(self) -> None:
        """Wait for every in-flight job task to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Main loop ─────────────────────────────────────────────────────────────

    def stop(self) -> None:
        self._stop.set()

    async def run_forever(self) -> None:
        """Poll until ``stop()`` is called or SIGINT/SIGTERM arrives.

        In-flight jobs are awaited before returning.
        """
        loop = asyncio.get_running_loop()
        handled: list[signal.Signals] = []
        if platform.system() != "Windows":
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self._on_signal, sig)
                handled.append(sig)

        log.info(
            "Scheduler started.  timezone=%s  poll=%ss  jobs=%s",
            self.timezone, self.poll_seconds, ", ".join(sorted(self.jobs)),
        )
        try:
            while not self._stop.is_set():
                try:
                    fired = self.tick()
                except Exception as exc:
                    log.error("Scheduler tick failed: %s", exc, exc_info=True)
                    fired = []
                if fired:
                    log.info("Dispatched: %s", ", ".join(fired))
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.poll_seconds)
                except asyncio.TimeoutError:
                    pass
        finally:
            for sig in handled:
                loop.remove_signal_handler(sig)
            await self.drain()

        log.info("Scheduler stopped.")

    def _on_signal(self, sig: signal.Signals) -> None:
        log.info("Signal %s received, stopping scheduler.", sig.name)
        self.stop()
