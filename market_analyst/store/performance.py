"""
Recommendation ledger and performance state.

``RecommendationStore`` owns ``performance.json``: the capacity-bounded,
append-only ledger of directional calls, the weekly scores, the strategy
notes and the last-review dates.  Every operation is a whole-document
read-modify-write through ``JsonDocument``.

Capacity rules (FIFO, silent):
  - recommendations: ``max_recommendations`` (default 200)
  - weekly scores:   ``max_weekly_scores``   (default 52)
  - strategy notes:  ``max_strategy_notes``  (default 30)

Review eligibility: a call is pending review when its outcome is unset or
``"pending"`` AND it was issued on or before yesterday in the configured
timezone.  Same-day calls are never eligible, so the market always gets at
least one full session to move before judgment.
"""

from __future__ import annotations

import datetime as dt
import logging
from datetime import timedelta
from pathlib import Path
from typing import Iterable, Optional
from uuid import uuid4

from market_analyst.config import AppConfig, PerformanceConfig
from market_analyst.models.performance import PerformanceState, WeeklyScore
from market_analyst.models.recommendation import (
    Direction,
    Recommendation,
    ReviewUpdate,
    TerminalOutcome,
)
from market_analyst.store.documents import JsonDocument
from market_analyst.utils.time_utils import Clock, local_today, round_half_up, utcnow

logger = logging.getLogger(__name__)


class RecommendationStore:
    """Append-only ledger of directional calls and their outcomes.

    Args:
        path:     Location of ``performance.json``.
        limits:   Capacities and batch sizes.
        timezone: IANA zone used for "today" / "yesterday".
        clock:    Source of the current instant (injected in tests).
    """

    def __init__(
        self,
        path: Path,
        limits: Optional[PerformanceConfig] = None,
        timezone: str = "America/New_York",
        clock: Clock = utcnow,
    ) -> None:
        self.document = JsonDocument(Path(path), PerformanceState)
        self.limits = limits or PerformanceConfig()
        self.timezone = timezone
        self.clock = clock

    @classmethod
    def from_config(cls, config: AppConfig, clock: Clock = utcnow) -> "RecommendationStore":
        return cls(
            path=config.storage.performance_path,
            limits=config.performance,
            timezone=config.scheduler.timezone,
            clock=clock,
        )

    # ── Document access ───────────────────────────────────────────────────────

    def load(self) -> PerformanceState:
        return self.document.load()

    def save(self, state: PerformanceState) -> bool:
        return self.document.save(state)

    def today(self) -> dt.date:
        return local_today(self.clock, self.timezone)

    # ── Ledger ────────────────────────────────────────────────────────────────

    def record(
        self,
        ticker: str,
        direction: Direction,
        confidence: int,
        type: str,
        summary: str,
        date: Optional[dt.date] = None,
    ) -> Recommendation:
        """Append a new call and return it with its generated id.

        ``date`` defaults to today in the configured timezone.  When the
        ledger grows past capacity the oldest entries are dropped.
        """
        state = self.load()
        call_date = date or self.today()
        existing_ids = {r.id for r in state.recommendations}

        rec_id = _new_id(call_date.isoformat(), ticker.strip().upper())
        while rec_id in existing_ids:
            rec_id = _new_id(call_date.isoformat(), ticker.strip().upper())

        rec = Recommendation(
            id=rec_id,
            date=call_date,
            ticker=ticker,
            direction=direction,
            confidence=confidence,
            type=type,
            summary=summary,
        )
        recs = state.recommendations + [rec]
        cap = self.limits.max_recommendations
        if len(recs) > cap:
            recs = recs[-cap:]
        state.recommendations = recs
        self.save(state)

        logger.info(
            "Recorded %s call on %s (%d%% confidence) id=%s",
            rec.direction, rec.ticker, rec.confidence, rec.id,
        )
        return rec

    def pending_reviews(self) -> list[Recommendation]:
        """Unreviewed calls dated yesterday or earlier, in ledger order."""
        yesterday = self.today() - timedelta(days=1)
        return [
            r for r in self.load().recommendations
            if r.outcome in (None, "pending") and r.date <= yesterday
        ]

    def update_outcome(self, rec_id: str, outcome: TerminalOutcome, notes: str) -> bool:
        """Set the verdict on one call.  Returns ``False`` for an unknown id."""
        return self.batch_update_outcomes(
            [ReviewUpdate(id=rec_id, outcome=outcome, notes=notes)]
        ) > 0

    def batch_update_outcomes(self, updates: Iterable[ReviewUpdate]) -> int:
        """Apply verdicts by id and return how many entries changed.

        Ids not present in the ledger are ignored.  A later verdict for the
        same id overwrites an earlier one.
        """
        by_id = {u.id: u for u in updates}
        if not by_id:
            return 0

        state = self.load()
        reviewed_at = self.clock()
        applied = 0
        new_recs: list[Recommendation] = []
        for rec in state.recommendations:
            update = by_id.get(rec.id)
            if update is not None:
                rec = rec.with_outcome(update.outcome, update.notes, reviewed_at)
                applied += 1
            new_recs.append(rec)

        unknown = len(by_id) - applied
        if unknown:
            logger.debug("Ignored %d review update(s) for unknown ids", unknown)
        if applied:
            state.recommendations = new_recs
            self.save(state)
        return applied

    # ── Weekly scores and notes ───────────────────────────────────────────────

    def record_weekly_score(self, score: WeeklyScore) -> None:
        state = self.load()
        cap = self.limits.max_weekly_scores
        state.weekly_scores = (state.weekly_scores + [score])[-cap:]
        self.save(state)

    def add_strategy_note(self, note: str) -> str:
        """Append a dated strategy note and return the stored text."""
        state = self.load()
        entry = f"[{self.today().isoformat()}] {note.strip()}"
        cap = self.limits.max_strategy_notes
        state.strategy_notes = (state.strategy_notes + [entry])[-cap:]
        self.save(state)
        return entry

    # ── Review markers ────────────────────────────────────────────────────────

    def mark_nightly_review(self) -> None:
        state = self.load()
        state.last_nightly_review = self.today().isoformat()
        self.save(state)

    def mark_weekly_review(self) -> None:
        state = self.load()
        state.last_weekly_review = self.today().isoformat()
        self.save(state)

    def last_nightly_review(self) -> str:
        return self.load().last_nightly_review

    def last_weekly_review(self) -> str:
        return self.load().last_weekly_review

    # ── Prompt context ────────────────────────────────────────────────────────

    def performance_context(self) -> str:
        """Summarise the track record for the collaborator's system prompt.

        Accuracy is only quoted once at least five calls have been reviewed.
        """
        state = self.load()
        parts: list[str] = []

        reviewed = state.reviewed
        if len(reviewed) >= 5:
            correct = sum(1 for r in reviewed if r.outcome == "correct")
            wrong = sum(1 for r in reviewed if r.outcome == "wrong")
            partial = sum(1 for r in reviewed if r.outcome == "partial")
            accuracy = round_half_up((correct + partial * 0.5) / len(reviewed) * 100)
            parts.append(
                f"**Your Track Record:** {len(reviewed)} reviewed calls | "
                f"{accuracy}% accuracy | {correct} correct, {wrong} wrong, {partial} partial"
            )

        recent_weeks = state.weekly_scores[-4:]
        if recent_weeks:
            weeks = " | ".join(f"{w.week_of}: {w.accuracy:g}%" for w in recent_weeks)
            parts.append(f"**Recent Weekly Scores:** {weeks}")

        if state.strategy_notes:
            notes = "\n".join(f"- {n}" for n in state.strategy_notes[-5:])
            parts.append(f"**Self-Improvement Notes:**\n{notes}")

        return "\n".join(parts)


def _new_id(date_str: str, ticker: str) -> str:
    return f"{date_str}-{ticker}-{uuid4().hex[:8]}"
