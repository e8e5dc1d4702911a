"""Tests for reporting/formatters.py."""

from __future__ import annotations

from datetime import date

from market_analyst.models.knowledge import KnowledgeStats
from market_analyst.models.performance import PerformanceState, WeeklyScore
from market_analyst.models.recommendation import Recommendation
from market_analyst.reporting.formatters import (
    format_performance_summary,
    format_recommendations_table,
    format_weekly_scores_table,
)


def _rec(ticker: str, outcome: str | None) -> Recommendation:
    return Recommendation(
        id=f"2024-01-08-{ticker}-deadbeef", date=date(2024, 1, 8), ticker=ticker,
        direction="bullish", confidence=70, type="morning-scan", summary="s", outcome=outcome,
    )


def test_performance_summary_empty() -> None:
    out = format_performance_summary(PerformanceState())
    assert "=== Analyst Performance ===" in out
    assert "Overall accuracy:  N/A" in out
    assert "Last nightly:      never" in out
    assert "(no weekly scores yet)" in out
    assert "Knowledge base" not in out


def test_performance_summary_with_data() -> None:
    perf = PerformanceState(
        recommendations=[_rec("NVDA", "correct"), _rec("AMD", None)],
        strategy_notes=["[2024-01-09] Respect the trend"],
        last_nightly_review="2024-01-09",
    )
    kb = KnowledgeStats(total_files=5, total_bytes=2048, oldest_file=None, newest_file=None)
    out = format_performance_summary(perf, kb)
    assert "Reviewed:          1" in out
    assert "Awaiting review:   1" in out
    assert "Overall accuracy:  100%" in out
    assert "Knowledge base:    5 files, 2KB" in out
    assert "- [2024-01-09] Respect the trend" in out


def test_weekly_scores_table_rows() -> None:
    score = WeeklyScore(week_of=date(2024, 1, 8), total_calls=8, correct=5, wrong=3,
                        partial=0, accuracy=63, lesson="L" * 80)
    out = format_weekly_scores_table([score])
    lines = out.splitlines()
    assert "Week of" in lines[0]
    assert set(lines[1].strip()) == {"-"}
    assert lines[2].strip().startswith("2024-01-08")
    assert "63%" in lines[2]
    assert "L" * 50 in lines[2] and "L" * 51 not in lines[2]


def test_recommendations_table() -> None:
    out = format_recommendations_table([_rec("NVDA", "wrong"), _rec("AMD", None)], title="Pending")
    assert "=== Pending ===" in out
    assert "2024-01-08-NVDA-deadbeef" in out
    assert "pending" in out and "wrong" in out


def test_recommendations_table_empty() -> None:
    assert format_recommendations_table([], title="Pending").endswith("(none)")
