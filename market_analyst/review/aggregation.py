"""
Weekly score aggregation.

Once a week the analyst rolls up the calls it reviewed over the trailing
window into a ``WeeklyScore``:

    accuracy = round_half_up((correct + 0.5 * partial) / total * 100)

Weeks with fewer than ``min_calls`` reviewed calls produce no score.  The
best call, worst call and lesson come from the collaborator's narrative and
fall back to fixed placeholders when the prose does not mention them.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from market_analyst.models.performance import WeeklyScore
from market_analyst.models.recommendation import Recommendation
from market_analyst.utils.time_utils import round_half_up, week_start

BEST_CALL_RE = re.compile(r"best\s*call[:\s]*(.{10,200})", re.IGNORECASE)
WORST_CALL_RE = re.compile(r"worst\s*call[:\s]*(.{10,200})", re.IGNORECASE)
LESSON_RE = re.compile(r"lesson[:\s]*(.{10,200})", re.IGNORECASE)

NO_CALL = "N/A"
DEFAULT_LESSON = "Keep refining analysis approach"


@dataclass(frozen=True)
class WeeklyTally:
    total:   int
    correct: int
    wrong:   int
    partial: int

    @property
    def accuracy(self) -> int:
        if self.total == 0:
            return 0
        return round_half_up((self.correct + 0.5 * self.partial) / self.total * 100)


@dataclass(frozen=True)
class WeeklyNarrative:
    best_call:  str = NO_CALL
    worst_call: str = NO_CALL
    lesson:     Optional[str] = None

    @property
    def lesson_or_default(self) -> str:
        return self.lesson or DEFAULT_LESSON


def weekly_calls(
    recommendations: list[Recommendation],
    today: dt.date,
    window_days: int = 7,
) -> list[Recommendation]:
    """Reviewed calls dated within the trailing ``window_days``, ledger order."""
    since = today - timedelta(days=window_days)
    return [r for r in recommendations if r.date >= since and r.is_reviewed]


def tally(calls: list[Recommendation]) -> WeeklyTally:
    return WeeklyTally(
        total=len(calls),
        correct=sum(1 for r in calls if r.outcome == "correct"),
        wrong=sum(1 for r in calls if r.outcome == "wrong"),
        partial=sum(1 for r in calls if r.outcome == "partial"),
    )


def build_weekly_prompt(
    calls: list[Recommendation],
    counts: WeeklyTally,
    analyst_name: str = "Neutron",
) -> str:
    call_list = "\n".join(
        f"- {r.date}: {r.direction} on {r.ticker} ({r.confidence}%) -> {r.outcome}"
        + (f" - {r.review_notes}" if r.review_notes else "")
        for r in calls
    )
    return f"""You are {analyst_name} doing your weekly performance review. Here's your week:

## This Week's Calls
{call_list}

## Stats
- Total: {counts.total} | Correct: {counts.correct} | Wrong: {counts.wrong} | Partial: {counts.partial}
- Accuracy: {counts.accuracy}%

Based on this week's performance:
1. What was your BEST call and why?
2. What was your WORST call and why?
3. What is the ONE most important lesson from this week?
4. What pattern should you watch for next week?

Be specific and self-critical. This is for your own improvement."""


def _first_capture(pattern: re.Pattern[str], text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    return match.group(1).strip()[:200] or None


def extract_narrative(text: str) -> WeeklyNarrative:
    """Pull best call, worst call and lesson out of free-form review prose."""
    if not text:
        return WeeklyNarrative()
    return WeeklyNarrative(
        best_call=_first_capture(BEST_CALL_RE, text) or NO_CALL,
        worst_call=_first_capture(WORST_CALL_RE, text) or NO_CALL,
        lesson=_first_capture(LESSON_RE, text),
    )


def build_weekly_score(
    counts: WeeklyTally,
    narrative: WeeklyNarrative,
    today: dt.date,
) -> WeeklyScore:
    """Assemble the immutable score for the week containing ``today``."""
    return WeeklyScore(
        week_of=week_start(today),
        total_calls=counts.total,
        correct=counts.correct,
        wrong=counts.wrong,
        partial=counts.partial,
        accuracy=counts.accuracy,
        best_call=narrative.best_call,
        worst_call=narrative.worst_call,
        lesson=narrative.lesson_or_default,
    )
