"""
Aggregate performance document.

``PerformanceState`` is the aggregate root persisted as ``performance.json``:
the recommendation ledger, weekly scores, strategy notes and the last review
dates.  It is the only model here that is NOT frozen: the store loads it,
replaces its lists, and writes the whole document back.

``WeeklyScore`` is produced once per week by the aggregation engine and never
changed afterwards.
"""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from market_analyst.models.recommendation import Recommendation


class WeeklyScore(BaseModel):
    """One week's accuracy rollup.

    Attributes:
        week_of: Monday of the reviewed week.
        total_calls: Reviewed calls counted this week.
        correct: Calls judged correct.
        wrong: Calls judged wrong.
        partial: Calls judged partially correct.
        accuracy: ``(correct + 0.5 * partial) / total`` as a whole percentage.
        best_call: Best call description extracted from the weekly narrative.
        worst_call: Worst call description extracted from the weekly narrative.
        lesson: Key takeaway of the week.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    week_of: dt.date
    total_calls: int
    correct: int
    wrong: int
    partial: int
    accuracy: float
    best_call: str = "N/A"
    worst_call: str = "N/A"
    lesson: str = ""

    @field_validator("accuracy")
    @classmethod
    def validate_accuracy(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"accuracy must be in [0, 100], got {v}.")
        return v


class PerformanceState(BaseModel):
    """Everything the analyst knows about its own track record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    recommendations: list[Recommendation] = []
    weekly_scores: list[WeeklyScore] = []
    strategy_notes: list[str] = []
    last_nightly_review: str = ""
    last_weekly_review: str = ""

    @property
    def reviewed(self) -> list[Recommendation]:
        """Recommendations holding a terminal outcome, in ledger order."""
        return [r for r in self.recommendations if r.is_reviewed]
