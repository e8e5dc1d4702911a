"""
Time-based retention sweeps over the knowledge store.

Two independent sweeps keep the store from growing without bound:

Consolidation
  Daily artifacts (``morning-brief-``, ``eod-recap-``, ``scan-``) last
  modified more than ``consolidate_after_days`` ago are grouped by the
  Monday on or before the date embedded in their name.  Each group of two
  or more becomes one ``weekly-summary-{monday}.md`` holding a header per
  member plus the first ``excerpt_chars`` characters of its text, and the
  members are then deleted.  A week whose summary already exists is left
  alone, so a sweep never overwrites a summary.

Pruning
  Analysis artifacts (``analysis-``, ``options-``, ``sentiment-``) last
  modified more than ``prune_after_days`` ago are deleted one at a time.

Per-artifact failures are logged and skipped; neither sweep raises for a
single bad file.  The summary is always written before any member is
deleted, so a failed write loses nothing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from market_analyst.config import KnowledgeConfig
from market_analyst.knowledge.store import KnowledgeStore
from market_analyst.models.knowledge import KnowledgeStats, SweepResult
from market_analyst.utils.time_utils import extract_embedded_date, utcnow, week_start

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MaintenanceReport:
    consolidation: SweepResult
    pruning:       SweepResult
    stats:         KnowledgeStats

    @property
    def changed(self) -> bool:
        return self.consolidation.changed or self.pruning.changed


def _aware(now: Optional[datetime]) -> datetime:
    # Naive instants are UTC.
    if now is None:
        return utcnow()
    return now if now.tzinfo is not None else now.replace(tzinfo=timezone.utc)


def render_weekly_summary(monday: date, members: list[tuple[str, str]], excerpt_chars: int) -> str:
    """Render the consolidated text for one week of daily artifacts."""
    sections = [
        f"# Weekly Summary - Week of {monday.isoformat()}",
        f"*Consolidated from {len(members)} daily files*\n",
    ]
    sections.extend(f"---\n### {name}\n{content[:excerpt_chars]}" for name, content in members)
    return "\n\n".join(sections)


def consolidate_old_artifacts(
    store: KnowledgeStore,
    now: Optional[datetime] = None,
    config: Optional[KnowledgeConfig] = None,
) -> SweepResult:
    """Fold aged daily artifacts into per-week summaries.

    Returns:
        ``SweepResult`` where ``processed`` counts summaries written and
        ``deleted`` counts daily artifacts removed.
    """
    cfg = config or KnowledgeConfig()
    cutoff = _aware(now) - timedelta(days=cfg.consolidate_after_days)

    groups: dict[date, list[tuple[str, str]]] = {}
    for artifact in store.list_artifacts():
        if artifact.modified_at >= cutoff or not artifact.has_prefix(cfg.daily_prefixes):
            continue
        embedded = extract_embedded_date(artifact.name)
        if embedded is None:
            continue
        content = store.read(artifact.name)
        if content is None:
            continue
        groups.setdefault(week_start(embedded), []).append((artifact.name, content))

    written = 0
    deleted = 0
    for monday, members in sorted(groups.items()):
        if len(members) < 2:
            continue
        summary_name = f"{cfg.summary_prefix}{monday.isoformat()}.md"
        if store.exists(summary_name):
            logger.debug("Summary %s already exists; leaving week alone", summary_name)
            continue

        if store.write(summary_name, render_weekly_summary(monday, members, cfg.excerpt_chars)) is None:
            continue
        written += 1
        for name, _ in members:
            if store.delete(name):
                deleted += 1

    return SweepResult(processed=written, deleted=deleted)


def prune_old_analyses(
    store: KnowledgeStore,
    now: Optional[datetime] = None,
    config: Optional[KnowledgeConfig] = None,
) -> SweepResult:
    """Delete analysis artifacts past the retention age.

    Returns:
        ``SweepResult`` where ``processed`` counts aged artifacts selected
        and ``deleted`` counts those actually removed.
    """
    cfg = config or KnowledgeConfig()
    cutoff = _aware(now) - timedelta(days=cfg.prune_after_days)

    aged = [
        a for a in store.list_artifacts()
        if a.modified_at < cutoff and a.has_prefix(cfg.analysis_prefixes)
    ]
    deleted = sum(1 for a in aged if store.delete(a.name))
    return SweepResult(processed=len(aged), deleted=deleted)


def run_maintenance(
    store: KnowledgeStore,
    now: Optional[datetime] = None,
    config: Optional[KnowledgeConfig] = None,
) -> MaintenanceReport:
    """Run consolidation then pruning and report what changed."""
    now = _aware(now)
    consolidation = consolidate_old_artifacts(store, now=now, config=config)
    pruning = prune_old_analyses(store, now=now, config=config)
    report = MaintenanceReport(consolidation=consolidation, pruning=pruning, stats=store.stats())

    if report.changed:
        logger.info(
            "Knowledge maintenance: %d weekly summaries written, %d daily files removed, "
            "%d analyses pruned | %d files, %dKB total",
            consolidation.processed, consolidation.deleted, pruning.deleted,
            report.stats.total_files, report.stats.total_kb,
        )
    else:
        logger.debug("Knowledge maintenance: nothing to do")
    return report
