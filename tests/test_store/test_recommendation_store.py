"""
Tests for store/performance.py — RecommendationStore.

Covers:
  - id generation, uniqueness and ticker normalisation
  - FIFO capacity eviction of recommendations, weekly scores and notes
  - review eligibility (same-day calls excluded, local-date boundary)
  - batch outcome updates: unknown ids, last-wins, reviewed_at
  - review markers and the performance context summary
  - loading documents written with camelCase keys
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from market_analyst.config import PerformanceConfig
from market_analyst.models.performance import WeeklyScore
from market_analyst.models.recommendation import ReviewUpdate
from market_analyst.store.performance import RecommendationStore

ID_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-[A-Z]+-[0-9a-f]{8}$")


def _record(store: RecommendationStore, ticker: str = "NVDA", day: date | None = None, **kw):
    return store.record(
        ticker=ticker,
        direction=kw.pop("direction", "bullish"),
        confidence=kw.pop("confidence", 60),
        type=kw.pop("type", "analysis"),
        summary=kw.pop("summary", f"call on {ticker}"),
        date=day,
    )


# ── record() ──────────────────────────────────────────────────────────────────


def test_record_assigns_id_and_local_date(rec_store) -> None:
    rec = _record(rec_store, ticker=" nvda ")
    assert rec.ticker == "NVDA"
    assert rec.date == date(2024, 1, 10)
    assert ID_RE.match(rec.id)
    assert rec.id.startswith("2024-01-10-NVDA-")
    assert rec.outcome is None


def test_record_persists_camel_case_document(rec_store) -> None:
    _record(rec_store)
    raw = json.loads(rec_store.document.path.read_text(encoding="utf-8"))
    assert set(raw) >= {"recommendations", "weeklyScores", "strategyNotes", "lastNightlyReview"}
    assert "reviewNotes" in raw["recommendations"][0]


def test_ids_are_unique(rec_store) -> None:
    ids = {_record(rec_store, ticker="AAPL").id for _ in range(40)}
    assert len(ids) == 40


def test_ledger_evicts_oldest_past_capacity(tmp_path, clock) -> None:
    store = RecommendationStore(
        tmp_path / "performance.json",
        limits=PerformanceConfig(max_recommendations=5),
        clock=clock,
    )
    recs = [_record(store, ticker=f"T{i}") for i in range(7)]
    kept = store.load().recommendations
    assert [r.id for r in kept] == [r.id for r in recs[2:]]


def test_record_rejects_out_of_range_confidence(rec_store) -> None:
    with pytest.raises(ValidationError):
        _record(rec_store, confidence=101)


# ── pending_reviews() ─────────────────────────────────────────────────────────


def test_pending_excludes_same_day_calls(rec_store) -> None:
    old = _record(rec_store, ticker="AMD", day=date(2024, 1, 9))
    _record(rec_store, ticker="NVDA")                     # today
    assert [r.id for r in rec_store.pending_reviews()] == [old.id]


def test_pending_excludes_reviewed_calls(rec_store) -> None:
    a = _record(rec_store, ticker="AMD", day=date(2024, 1, 8))
    b = _record(rec_store, ticker="TSLA", day=date(2024, 1, 8))
    rec_store.update_outcome(a.id, "correct", "ran up")
    assert [r.id for r in rec_store.pending_reviews()] == [b.id]


def test_pending_uses_local_date_boundary(rec_store, clock) -> None:
    # 03:00 UTC Jan 11 is 22:00 Jan 10 in New York: Jan 10 calls are same-day.
    _record(rec_store, ticker="NVDA", day=date(2024, 1, 10))
    clock.set(datetime(2024, 1, 11, 3, 0, tzinfo=timezone.utc))
    assert rec_store.pending_reviews() == []

    clock.set(datetime(2024, 1, 11, 6, 0, tzinfo=timezone.utc))     # 01:00 ET Jan 11
    assert len(rec_store.pending_reviews()) == 1


def test_explicit_pending_outcome_is_eligible(rec_store) -> None:
    rec = _record(rec_store, day=date(2024, 1, 5))
    state = rec_store.load()
    state.recommendations = [rec.model_copy(update={"outcome": "pending"})]
    rec_store.save(state)
    assert len(rec_store.pending_reviews()) == 1


# ── Outcome updates ───────────────────────────────────────────────────────────


def test_batch_update_applies_and_stamps_review_time(rec_store, clock) -> None:
    a = _record(rec_store, ticker="AMD", day=date(2024, 1, 8))
    b = _record(rec_store, ticker="MSFT", day=date(2024, 1, 8))

    applied = rec_store.batch_update_outcomes([
        ReviewUpdate(id=a.id, outcome="correct", notes="broke out"),
        ReviewUpdate(id=b.id, outcome="partial", notes="chopped"),
    ])
    assert applied == 2

    by_id = {r.id: r for r in rec_store.load().recommendations}
    assert by_id[a.id].outcome == "correct"
    assert by_id[a.id].review_notes == "broke out"
    assert by_id[a.id].reviewed_at == clock.now
    assert by_id[b.id].outcome == "partial"
    # Immutable fields untouched.
    assert by_id[a.id].ticker == "AMD" and by_id[a.id].date == date(2024, 1, 8)


def test_batch_update_ignores_unknown_ids(rec_store) -> None:
    rec = _record(rec_store, day=date(2024, 1, 8))
    before = rec_store.document.path.read_text(encoding="utf-8")

    assert rec_store.batch_update_outcomes([ReviewUpdate(id="nope", outcome="wrong")]) == 0
    assert rec_store.update_outcome("also-nope", "correct", "x") is False
    assert rec_store.document.path.read_text(encoding="utf-8") == before
    assert rec_store.load().recommendations[0].id == rec.id


def test_later_update_for_same_id_wins(rec_store) -> None:
    rec = _record(rec_store, day=date(2024, 1, 8))
    rec_store.batch_update_outcomes([
        ReviewUpdate(id=rec.id, outcome="correct", notes="first"),
        ReviewUpdate(id=rec.id, outcome="wrong", notes="second"),
    ])
    stored = rec_store.load().recommendations[0]
    assert (stored.outcome, stored.review_notes) == ("wrong", "second")


def test_reviewed_call_can_be_corrected_but_not_reset_to_pending(rec_store) -> None:
    rec = _record(rec_store, day=date(2024, 1, 8))
    rec_store.update_outcome(rec.id, "wrong", "faded")
    rec_store.update_outcome(rec.id, "correct", "recovered by close")
    assert rec_store.load().recommendations[0].outcome == "correct"

    with pytest.raises(ValidationError):
        ReviewUpdate(id=rec.id, outcome="pending")


# ── Scores, notes, markers ────────────────────────────────────────────────────


def _score(week: date) -> WeeklyScore:
    return WeeklyScore(week_of=week, total_calls=4, correct=2, wrong=1, partial=1, accuracy=63)


def test_weekly_scores_capped(tmp_path, clock) -> None:
    store = RecommendationStore(
        tmp_path / "p.json", limits=PerformanceConfig(max_weekly_scores=3), clock=clock,
    )
    weeks = [date(2024, 1, 1 + 7 * i) for i in range(4)]
    for w in weeks:
        store.record_weekly_score(_score(w))
    assert [s.week_of for s in store.load().weekly_scores] == weeks[1:]


def test_strategy_notes_dated_and_capped(tmp_path, clock) -> None:
    store = RecommendationStore(
        tmp_path / "p.json", limits=PerformanceConfig(max_strategy_notes=2), clock=clock,
    )
    assert store.add_strategy_note("  respect the trend ") == "[2024-01-10] respect the trend"
    store.add_strategy_note("size down into CPI")
    store.add_strategy_note("fade gap-ups in chop")
    notes = store.load().strategy_notes
    assert notes == ["[2024-01-10] size down into CPI", "[2024-01-10] fade gap-ups in chop"]


def test_review_markers_use_local_date(rec_store) -> None:
    assert rec_store.last_nightly_review() == ""
    rec_store.mark_nightly_review()
    rec_store.mark_weekly_review()
    assert rec_store.last_nightly_review() == "2024-01-10"
    assert rec_store.last_weekly_review() == "2024-01-10"


# ── performance_context() ─────────────────────────────────────────────────────


def test_performance_context_hides_accuracy_below_five_reviews(rec_store) -> None:
    for i in range(4):
        rec = _record(rec_store, ticker=f"T{i}", day=date(2024, 1, 8))
        rec_store.update_outcome(rec.id, "correct", "")
    assert "Track Record" not in rec_store.performance_context()


def test_performance_context_includes_record_scores_and_notes(rec_store) -> None:
    outcomes = ["correct", "correct", "correct", "wrong", "partial"]
    for i, outcome in enumerate(outcomes):
        rec = _record(rec_store, ticker=f"T{i}", day=date(2024, 1, 8))
        rec_store.update_outcome(rec.id, outcome, "")
    rec_store.record_weekly_score(_score(date(2024, 1, 8)))
    rec_store.add_strategy_note("wait for confirmation")

    ctx = rec_store.performance_context()
    assert "5 reviewed calls | 70% accuracy | 3 correct, 1 wrong, 1 partial" in ctx
    assert "2024-01-08: 63%" in ctx
    assert "wait for confirmation" in ctx


def test_performance_context_empty_for_new_ledger(rec_store) -> None:
    assert rec_store.performance_context() == ""


# ── Legacy documents ──────────────────────────────────────────────────────────


def test_loads_existing_camel_case_document(rec_store) -> None:
    doc = {
        "recommendations": [
            {
                "id": "2024-01-05-AAPL-abc123",
                "date": "2024-01-05",
                "ticker": "AAPL",
                "direction": "bearish",
                "confidence": 55,
                "type": "morning-brief",
                "summary": "morning-brief: soft open",
                "outcome": "wrong",
                "reviewedAt": "2024-01-06T01:02:03.000Z",
                "reviewNotes": "bounced",
            }
        ],
        "weeklyScores": [],
        "strategyNotes": ["[2024-01-06] stop fighting the tape"],
        "lastNightlyReview": "2024-01-06",
        "lastWeeklyReview": "",
    }
    rec_store.document.path.parent.mkdir(parents=True, exist_ok=True)
    rec_store.document.path.write_text(json.dumps(doc), encoding="utf-8")

    state = rec_store.load()
    assert state.recommendations[0].review_notes == "bounced"
    assert state.recommendations[0].is_reviewed
    assert state.last_nightly_review == "2024-01-06"


def test_invalid_entry_is_kept_aside_when_next_call_is_recorded(rec_store) -> None:
    for ticker in ("AAA", "BBB", "CCC"):
        _record(rec_store, ticker)
    path = rec_store.document.path
    raw = json.loads(path.read_text(encoding="utf-8"))
    raw["recommendations"][1]["direction"] = "Bullish"
    path.write_text(json.dumps(raw), encoding="utf-8")

    _record(rec_store, "NEW")

    backups = list(path.parent.glob("performance.json.corrupt-*"))
    assert len(backups) == 1
    kept = json.loads(backups[0].read_text(encoding="utf-8"))
    assert [r["ticker"] for r in kept["recommendations"]] == ["AAA", "BBB", "CCC"]
    assert [r.ticker for r in rec_store.load().recommendations] == ["NEW"]
