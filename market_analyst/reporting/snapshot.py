"""
Read-only performance snapshot for an external consumer.

The snapshot is a single markdown file written outside the analyst's own
data directory so another agent can read it without touching the analyst's
state.  It is fully overwritten on every export and never read back.

Sections:
  - investor profile summary and watchlist
  - overall accuracy over all reviewed calls (``correct / reviewed``; partial
    calls count against it here, unlike the weekly score)
  - the latest weekly score and its lesson
  - knowledge store statistics
  - the last 5 strategy notes
  - the last 10 recommendations
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from market_analyst.models.knowledge import KnowledgeStats
from market_analyst.models.performance import PerformanceState
from market_analyst.models.profile import InvestorProfile
from market_analyst.utils.time_utils import round_half_up

logger = logging.getLogger(__name__)

RECENT_RECOMMENDATIONS = 10
RECENT_NOTES = 5


def overall_accuracy(perf: PerformanceState) -> Optional[int]:
    """Whole-percent share of reviewed calls judged correct, ``None`` if none."""
    reviewed = perf.reviewed
    if not reviewed:
        return None
    correct = sum(1 for r in reviewed if r.outcome == "correct")
    return round_half_up(correct / len(reviewed) * 100)


def build_snapshot(
    perf: PerformanceState,
    profile: InvestorProfile,
    kb_stats: KnowledgeStats,
    watchlist: list[str],
    now: datetime,
    analyst_name: str = "Neutron",
) -> str:
    """Render the snapshot markdown.  Pure; performs no I/O."""
    reviewed = perf.reviewed
    correct = sum(1 for r in reviewed if r.outcome == "correct")
    wrong = sum(1 for r in reviewed if r.outcome == "wrong")
    partial = sum(1 for r in reviewed if r.outcome == "partial")
    accuracy = overall_accuracy(perf)
    latest_week = perf.weekly_scores[-1] if perf.weekly_scores else None

    lines: list[str] = [
        f"# {analyst_name} Weekly Summary",
        f"*Generated: {now.isoformat()}*",
        "*Read-only export, do not modify*\n",

        f"## Investor: {profile.username}",
        f"- Trading style: {', '.join(profile.trading_style) or 'still learning'}",
        f"- Preferred sectors: {', '.join(profile.preferred_sectors) or 'still learning'}",
        f"- Watchlist: {', '.join(watchlist) or 'empty'}",
        f"- Total trades tracked: {profile.stats.total_trades}",
        f"- Win/Loss: {profile.stats.wins}W / {profile.stats.losses}L\n",

        f"## {analyst_name} Performance",
        f"- Total recommendations reviewed: {len(reviewed)}",
        f"- Overall accuracy: {'N/A' if accuracy is None else f'{accuracy}%'}",
        f"- Correct: {correct} | Wrong: {wrong} | Partial: {partial}",
    ]
    if latest_week is not None:
        lines.append(f"- Last week ({latest_week.week_of}): {latest_week.accuracy:g}% accuracy")
        if latest_week.lesson:
            lines.append(f"- Key lesson: {latest_week.lesson}")

    lines += [
        "",
        "## Knowledge Base",
        f"- Files: {kb_stats.total_files}",
        f"- Total size: {kb_stats.total_kb}KB",
        f"- Newest: {kb_stats.newest_file or 'none'}",
        "",
        "## Self-Improvement Notes",
    ]
    lines += [f"- {note}" for note in perf.strategy_notes[-RECENT_NOTES:]]

    lines += ["", f"## Recent Recommendations (last {RECENT_RECOMMENDATIONS})"]
    for r in perf.recommendations[-RECENT_RECOMMENDATIONS:]:
        outcome = r.outcome or "pending"
        lines.append(
            f"- {r.date}: {r.direction} {r.ticker} ({r.confidence}%) [{outcome}] - {r.summary[:80]}"
        )

    return "\n".join(lines) + "\n"


def export_snapshot(
    path: Path,
    perf: PerformanceState,
    profile: InvestorProfile,
    kb_stats: KnowledgeStats,
    watchlist: list[str],
    now: datetime,
    analyst_name: str = "Neutron",
) -> Optional[Path]:
    """Write the snapshot, replacing any previous one.

    Returns:
        ``path`` as written, or ``None`` if the write failed (logged).
    """
    content = build_snapshot(perf, profile, kb_stats, watchlist, now, analyst_name)
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.error("Failed to export snapshot to %s: %s", path, exc)
        return None
    logger.info("Exported performance snapshot to %s", path)
    return path
