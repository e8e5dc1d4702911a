"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept already-loaded models and return plain multi-line
strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from market_analyst.models.knowledge import KnowledgeStats
from market_analyst.models.performance import PerformanceState, WeeklyScore
from market_analyst.models.recommendation import Recommendation
from market_analyst.reporting.snapshot import overall_accuracy


# ── Performance ──────────────────────────────────────────────────────────────


def format_performance_summary(perf: PerformanceState, kb_stats: KnowledgeStats | None = None) -> str:
    """Headline counts, recent weekly scores and strategy notes."""
    reviewed = perf.reviewed
    accuracy = overall_accuracy(perf)
    pending = len(perf.recommendations) - len(reviewed)

    lines: list[str] = []
    lines.append("")
    lines.append("=== Analyst Performance ===")
    lines.append(f"  Calls on record:   {len(perf.recommendations)}")
    lines.append(f"  Reviewed:          {len(reviewed)}")
    lines.append(f"  Awaiting review:   {pending}")
    lines.append(f"  Overall accuracy:  {'N/A' if accuracy is None else f'{accuracy}%'}")
    lines.append(f"  Last nightly:      {perf.last_nightly_review or 'never'}")
    lines.append(f"  Last weekly:       {perf.last_weekly_review or 'never'}")

    if kb_stats is not None:
        lines.append(
            f"  Knowledge base:    {kb_stats.total_files} files, {kb_stats.total_kb}KB"
        )

    lines.append("")
    lines.append(format_weekly_scores_table(perf.weekly_scores[-8:]))

    if perf.strategy_notes:
        lines.append("")
        lines.append("  Strategy notes (latest 5):")
        for note in perf.strategy_notes[-5:]:
            lines.append(f"    - {note}")

    return "\n".join(lines)


def format_weekly_scores_table(scores: list[WeeklyScore]) -> str:
    if not scores:
        return "  (no weekly scores yet)"

    header = (
        f"  {'Week of':<10}  {'Calls':>5}  {'Right':>5}  {'Wrong':>5}  "
        f"{'Part':>5}  {'Acc':>5}  Lesson"
    )
    lines = [header, "  " + "-" * (len(header) - 2)]
    for s in scores:
        lines.append(
            f"  {s.week_of.isoformat():<10}  {s.total_calls:>5}  {s.correct:>5}  "
            f"{s.wrong:>5}  {s.partial:>5}  {s.accuracy:>4g}%  {s.lesson[:50]}"
        )
    return "\n".join(lines)


# ── Recommendations ──────────────────────────────────────────────────────────


def format_recommendations_table(recs: list[Recommendation], title: str = "Recommendations") -> str:
    lines: list[str] = []
    lines.append("")
    lines.append(f"=== {title} ===")

    if not recs:
        lines.append("  (none)")
        return "\n".join(lines)

    header = (
        f"  {'Date':<10}  {'Ticker':<6}  {'Direction':<9}  {'Conf':>4}  "
        f"{'Outcome':<8}  Id"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) - 2))
    for r in recs:
        lines.append(
            f"  {r.date.isoformat():<10}  {r.ticker:<6}  {r.direction:<9}  "
            f"{r.confidence:>4}  {(r.outcome or 'pending'):<8}  {r.id}"
        )
    return "\n".join(lines)
