"""
Directional call models.

``Recommendation`` is a dated, ticker-scoped directional call.  Everything
except the review fields (``outcome``, ``reviewed_at``, ``review_notes``) is
fixed at creation; reviews produce a new instance via ``with_outcome()``
rather than mutating in place, so the model stays frozen.

``ReviewUpdate`` is one parsed verdict from a review pass.  Its ``outcome``
only admits terminal values, which is how the ledger guarantees a reviewed
call never reverts to ``pending``.

Persisted field names are camelCase (``reviewedAt``, ``reviewNotes``) to stay
compatible with documents written by earlier deployments; Python code uses
the snake_case attribute names.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

Direction = Literal["bullish", "bearish", "neutral"]
Outcome = Literal["correct", "wrong", "partial", "pending"]
TerminalOutcome = Literal["correct", "wrong", "partial"]

VALID_DIRECTIONS: frozenset[str] = frozenset({"bullish", "bearish", "neutral"})
TERMINAL_OUTCOMES: frozenset[str] = frozenset({"correct", "wrong", "partial"})


class Recommendation(BaseModel):
    """A directional call awaiting (or holding) a correctness verdict.

    Attributes:
        id: Ledger-unique identifier, ``{date}-{ticker}-{suffix}``.
        date: Local calendar date the call was issued.
        ticker: Upper-case ticker symbol.
        direction: ``"bullish"``, ``"bearish"`` or ``"neutral"``.
        confidence: Stated confidence, 0–100.
        type: Origin of the call, e.g. ``"morning-scan"`` or ``"analysis"``.
        summary: Short description of the call.
        outcome: Verdict, or ``None``/``"pending"`` before review.
        reviewed_at: UTC timestamp of the most recent verdict.
        review_notes: Reviewer's notes for the most recent verdict.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    date: dt.date
    ticker: str
    direction: Direction
    confidence: int
    type: str
    summary: str
    outcome: Optional[Outcome] = None
    reviewed_at: Optional[dt.datetime] = None
    review_notes: Optional[str] = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("ticker must not be empty.")
        return v

    @field_validator("confidence")
    @classmethod
    def validate_confidence(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"confidence must be in [0, 100], got {v}.")
        return v

    @property
    def is_reviewed(self) -> bool:
        """True once a terminal outcome has been recorded."""
        return self.outcome in TERMINAL_OUTCOMES

    def with_outcome(
        self,
        outcome: TerminalOutcome,
        notes: str,
        reviewed_at: dt.datetime,
    ) -> "Recommendation":
        """Return a copy carrying a new verdict."""
        return self.model_copy(
            update={"outcome": outcome, "review_notes": notes, "reviewed_at": reviewed_at}
        )


class ReviewUpdate(BaseModel):
    """One verdict parsed from review text."""

    model_config = ConfigDict(frozen=True)

    id: str
    outcome: TerminalOutcome
    notes: str = ""

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("id must not be empty.")
        return v
