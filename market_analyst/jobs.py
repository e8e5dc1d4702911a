"""
Scheduled job bodies.

``AnalystJobs`` wires the stores, the knowledge base and the text-generation
collaborator into the five recurring jobs the scheduler dispatches:

  morning-scan        Pre-market outlook; saves ``morning-brief-{date}.md``
                      and records the directional calls it mentions.
  eod-scan            End-of-day recap; saves ``eod-recap-{date}.md`` and
                      records its calls.
  nightly-review      Judges up to ``review_batch_size`` pending calls.
  weekly-review       Rolls the week into a ``WeeklyScore``, then exports the
                      snapshot and runs knowledge maintenance.
  weekly-maintenance  Knowledge maintenance plus snapshot export.

Failure policy
--------------
A ``CollaboratorError`` is logged and the job's output is skipped for this
cycle: nothing is recorded, and the review markers are left untouched so the
calls simply stay pending.  Any other exception propagates to the scheduler's
job boundary, which logs it.

The nightly and weekly reviews also check ``last_nightly_review`` /
``last_weekly_review`` in ``performance.json``.  That persisted marker keeps
a restarted process from repeating a review the in-memory gate has
forgotten.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional

from market_analyst.config import AppConfig
from market_analyst.knowledge.maintenance import MaintenanceReport, run_maintenance
from market_analyst.knowledge.store import KnowledgeStore
from market_analyst.llm.client import AnthropicTextGenerator, CollaboratorError, TextGenerator
from market_analyst.llm.prompts import SystemPromptBuilder
from market_analyst.models.performance import WeeklyScore
from market_analyst.models.recommendation import Recommendation
from market_analyst.reporting.snapshot import export_snapshot
from market_analyst.review.aggregation import (
    build_weekly_prompt,
    build_weekly_score,
    extract_narrative,
    tally,
    weekly_calls,
)
from market_analyst.review.extractor import (
    ReviewParseResult,
    build_review_prompt,
    parse_review_response,
    select_batch,
)
from market_analyst.review.scan_calls import extract_scan_calls
from market_analyst.scheduler import JobFn
from market_analyst.store.performance import RecommendationStore
from market_analyst.store.profile import ProfileStore
from market_analyst.store.watchlist import WatchlistStore
from market_analyst.utils.time_utils import Clock, utcnow

logger = logging.getLogger(__name__)


# ── Scan prompts ──────────────────────────────────────────────────────────────


def build_morning_prompt(tickers: list[str]) -> str:
    watchlist = (
        f"Current watchlist: {', '.join(tickers)}" if tickers
        else "No tickers on the watchlist yet."
    )
    focus = (
        f"Quick pre-market check on watchlist tickers: {', '.join(tickers)}" if tickers
        else "General sectors to watch today"
    )
    return f"""It's pre-market morning. Give a brief morning market outlook for today.

{watchlist}

Cover:
1. Pre-market futures and overnight action (S&P, Nasdaq, Dow direction)
2. Any major news or catalysts for today (earnings, economic data, Fed)
3. {focus}
4. Your overall market bias for the day (bullish/bearish/cautious)

For every ticker you have a view on, say it plainly, e.g. "bullish on NVDA".
Keep it punchy. 15-20 lines max."""


def build_eod_prompt(tickers: list[str]) -> str:
    watchlist = (
        f"Watchlist tickers to cover: {', '.join(tickers)}" if tickers
        else "No specific watchlist, cover major indices."
    )
    focus = (
        f"How did the watchlist do? Quick scoreboard for: {', '.join(tickers)}" if tickers
        else "Notable sector performance"
    )
    return f"""Market just closed. Give an end-of-day recap.

{watchlist}

Cover:
1. How the major indices closed (S&P 500, Nasdaq, Dow: direction and magnitude)
2. Key movers: what stood out today?
3. {focus}
4. Volume and breadth: was this conviction or noise?
5. What to watch for tomorrow

For every ticker you have a view on, say it plainly, e.g. "bearish on TSLA".
Keep it concise. 15-20 lines max."""


# ── Jobs ──────────────────────────────────────────────────────────────────────


class AnalystJobs:
    """The recurring jobs, bound to one set of stores.

    Args:
        config:          Application config (capacities, paths, persona).
        generator:       Text-generation collaborator.
        recommendations: Call ledger.
        profile:         Investor profile store.
        watchlist:       Watchlist store.
        knowledge:       Knowledge artifact store.
        clock:           Source of the current instant.
    """

    def __init__(
        self,
        config: AppConfig,
        generator: TextGenerator,
        recommendations: RecommendationStore,
        profile: ProfileStore,
        watchlist: WatchlistStore,
        knowledge: KnowledgeStore,
        clock: Clock = utcnow,
    ) -> None:
        self.config = config
        self.generator = generator
        self.recommendations = recommendations
        self.profile = profile
        self.watchlist = watchlist
        self.knowledge = knowledge
        self.clock = clock

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        generator: Optional[TextGenerator] = None,
        clock: Clock = utcnow,
    ) -> "AnalystJobs":
        """Build the stores from config.

        When ``generator`` is omitted, an ``AnthropicTextGenerator`` is created
        whose system prompt is rebuilt from these stores on every request.
        """
        recommendations = RecommendationStore.from_config(config, clock=clock)
        profile = ProfileStore.from_config(config, clock=clock)
        watchlist = WatchlistStore.from_config(config, clock=clock)
        knowledge = KnowledgeStore(Path(config.storage.knowledge_dir))

        if generator is None:
            persona = config.llm.system_prompt_path
            generator = AnthropicTextGenerator.from_config(
                config,
                system_prompt=SystemPromptBuilder(
                    Path(persona) if persona else None,
                    recommendations=recommendations,
                    profile=profile,
                    knowledge=knowledge,
                    knowledge_config=config.knowledge,
                    analyst_name=config.llm.analyst_name,
                ),
            )

        return cls(
            config=config,
            generator=generator,
            recommendations=recommendations,
            profile=profile,
            watchlist=watchlist,
            knowledge=knowledge,
            clock=clock,
        )

    def registry(self) -> dict[str, JobFn]:
        """Job callables keyed by their scheduler window name."""
        return {
            "morning-scan":       self.morning_scan,
            "eod-scan":           self.eod_scan,
            "nightly-review":     self.nightly_review,
            "weekly-review":      self.weekly_review,
            "weekly-maintenance": self.weekly_maintenance,
        }

    # ── Scans ─────────────────────────────────────────────────────────────────

    async def morning_scan(self) -> list[Recommendation]:
        return await self._scan("morning-scan", "morning-brief", "Morning Brief", build_morning_prompt)

    async def eod_scan(self) -> list[Recommendation]:
        return await self._scan("eod-scan", "eod-recap", "End of Day Recap", build_eod_prompt)

    async def _scan(
        self,
        job_name: str,
        artifact_prefix: str,
        title: str,
        build_prompt: Callable[[list[str]], str],
    ) -> list[Recommendation]:
        today = self.recommendations.today().isoformat()
        prompt = build_prompt(self.watchlist.tickers())

        try:
            response = await self.generator.generate(prompt)
        except CollaboratorError as exc:
            logger.error("%s failed: %s", title, exc)
            return []

        self.knowledge.write(f"{artifact_prefix}-{today}.md", f"# {title} - {today}\n\n{response}")
        recorded = self.record_scan_calls(response, job_name)
        logger.info(
            "%s complete (%d chars, %d call(s) recorded)", title, len(response), len(recorded),
        )
        return recorded

    def record_scan_calls(self, response: str, call_type: str) -> list[Recommendation]:
        """Record every directional call found in scan prose."""
        summary = f"{call_type}: {response[:150]}"
        return [
            self.recommendations.record(
                ticker=call.ticker,
                direction=call.direction,
                confidence=self.config.performance.scan_confidence,
                type=call_type,
                summary=summary,
            )
            for call in extract_scan_calls(response)
        ]

    # ── Reviews ───────────────────────────────────────────────────────────────

    async def nightly_review(self) -> Optional[ReviewParseResult]:
        """Judge the most recent pending calls and record the verdicts."""
        today = self.recommendations.today().isoformat()
        if self.recommendations.last_nightly_review() == today:
            logger.info("Nightly review already done for %s", today)
            return None

        pending = self.recommendations.pending_reviews()
        if not pending:
            self.recommendations.mark_nightly_review()
            logger.info("Nightly review: no pending recommendations to review")
            return None

        batch = select_batch(pending, self.config.performance.review_batch_size)
        prompt = build_review_prompt(batch, self.config.llm.analyst_name)
        logger.info("Running nightly review (%d pending, %d in batch)", len(pending), len(batch))

        try:
            response = await self.generator.generate(prompt)
        except CollaboratorError as exc:
            logger.error("Nightly review failed: %s", exc)
            return None

        result = parse_review_response(response)
        applied = self.recommendations.batch_update_outcomes(result.updates)
        if result.lesson:
            self.recommendations.add_strategy_note(result.lesson)

        self.knowledge.write(f"nightly-review-{today}.md", f"# Nightly Review - {today}\n\n{response}")
        self.recommendations.mark_nightly_review()

        counts = result.tally
        logger.info(
            "Nightly review complete: %d scored (%d correct, %d wrong, %d partial), "
            "%d skipped, %d unparsed line(s)",
            applied, counts["correct"], counts["wrong"], counts["partial"],
            len(result.skipped_ids), result.unparsed_lines,
        )
        return result

    async def weekly_review(self) -> Optional[WeeklyScore]:
        """Score the trailing week, then export the snapshot and run maintenance."""
        today = self.recommendations.today()
        if self.recommendations.last_weekly_review() == today.isoformat():
            logger.info("Weekly review already done for %s", today)
            return None

        perf_cfg = self.config.performance
        calls = weekly_calls(
            self.recommendations.load().recommendations, today, perf_cfg.weekly_window_days,
        )
        if len(calls) < perf_cfg.min_weekly_calls:
            self.recommendations.mark_weekly_review()
            logger.info(
                "Weekly review: not enough reviewed calls this week (%d < %d)",
                len(calls), perf_cfg.min_weekly_calls,
            )
            return None

        counts = tally(calls)
        prompt = build_weekly_prompt(calls, counts, self.config.llm.analyst_name)
        logger.info("Running weekly review over %d call(s)", counts.total)

        try:
            response = await self.generator.generate(prompt)
        except CollaboratorError as exc:
            logger.error("Weekly review failed: %s", exc)
            return None

        narrative = extract_narrative(response)
        score = build_weekly_score(counts, narrative, today)
        self.recommendations.record_weekly_score(score)
        if narrative.lesson:
            self.recommendations.add_strategy_note(narrative.lesson)

        self.knowledge.write(
            f"weekly-review-{today.isoformat()}.md",
            f"# Weekly Review - {today.isoformat()}\n\n{response}",
        )
        self.export_snapshot()
        self.maintain_knowledge()
        self.recommendations.mark_weekly_review()

        logger.info("Weekly review complete: %g%% accuracy this week", score.accuracy)
        return score

    # ── Maintenance ───────────────────────────────────────────────────────────

    async def weekly_maintenance(self) -> MaintenanceReport:
        report = self.maintain_knowledge()
        self.export_snapshot()
        return report

    def maintain_knowledge(self) -> MaintenanceReport:
        return run_maintenance(self.knowledge, now=self.clock(), config=self.config.knowledge)

    def export_snapshot(self) -> Optional[Path]:
        return export_snapshot(
            Path(self.config.export.snapshot_path),
            perf=self.recommendations.load(),
            profile=self.profile.load(),
            kb_stats=self.knowledge.stats(),
            watchlist=self.watchlist.tickers(),
            now=self.clock(),
            analyst_name=self.config.llm.analyst_name,
        )
