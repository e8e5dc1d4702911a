"""
Market Analyst — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (scheduler, one job, maintenance, export, ledger edits).
  5. Report result to stdout.

Install and run::

    pip install -e .
    market-analyst --help
    market-analyst validate-config
    market-analyst start-scheduler
    market-analyst run-job nightly-review
    market-analyst maintain-knowledge
    market-analyst export-snapshot
    market-analyst show-performance
    market-analyst record-call NVDA bullish --confidence 70 --summary "AI capex"
    market-analyst pending-reviews
    market-analyst watchlist --add AMD
    market-analyst profile --style swing --sector semis
    market-analyst record-trade NVDA buy --price 480 --outcome win
"""

from __future__ import annotations

import asyncio
import json
from typing import Optional

import typer

app = typer.Typer(
    name="market-analyst",
    help="Market Analyst: scheduled calls, self-review and knowledge upkeep.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from pathlib import Path

    from market_analyst.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from market_analyst.utils.logging import configure_logging
    configure_logging(config.logging)


def _build_jobs(config):
    from market_analyst.jobs import AnalystJobs
    return AnalystJobs.from_config(config)


_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    help="Path to TOML config file (default: config/default.toml).",
)


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = _CONFIG_OPTION,
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Timezone:         {config.scheduler.timezone}")
    typer.echo(f"  Poll interval:    {config.scheduler.poll_seconds:g}s")
    typer.echo(f"  Guard store:      {config.scheduler.guard_store}")
    typer.echo(f"  Data dir:         {config.storage.data_dir}")
    typer.echo(f"  Knowledge dir:    {config.storage.knowledge_dir}")
    typer.echo(f"  Snapshot path:    {config.export.snapshot_path}")
    typer.echo(f"  Model:            {config.llm.model}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config is valid.")


@app.command("start-scheduler")
def start_scheduler(
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Run the poll loop until Ctrl-C (or SIGTERM on Linux/macOS).

    Jobs fire inside their daily windows in the configured timezone, at most
    once per local calendar day.
    """
    from market_analyst.gate import TimeGate
    from market_analyst.scheduler import TaskScheduler

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    jobs = _build_jobs(config)
    scheduler = TaskScheduler(
        gate=TimeGate.from_config(config),
        jobs=jobs.registry(),
        timezone=config.scheduler.timezone,
        poll_seconds=config.scheduler.poll_seconds,
    )
    typer.echo(f"Scheduler running in {config.scheduler.timezone}. Press Ctrl-C to stop.")
    try:
        asyncio.run(scheduler.run_forever())
    except KeyboardInterrupt:
        pass
    typer.echo("[OK] Scheduler stopped.")


@app.command("run-job")
def run_job(
    name: str = typer.Argument(..., help="Job name, e.g. 'nightly-review'."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Run one scheduled job immediately, ignoring its time window."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    registry = _build_jobs(config).registry()
    if name not in registry:
        typer.echo(
            f"[ERROR] Unknown job '{name}'. Choose from: {', '.join(registry)}.",
            err=True,
        )
        raise typer.Exit(code=1)

    typer.echo(f"Running {name} ...")
    asyncio.run(registry[name]())
    typer.echo(f"[OK] {name} finished.")


@app.command("maintain-knowledge")
def maintain_knowledge(
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Consolidate aged daily artifacts and prune aged analyses."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    report = _build_jobs(config).maintain_knowledge()
    typer.echo(f"  Weekly summaries written: {report.consolidation.processed}")
    typer.echo(f"  Daily files removed:      {report.consolidation.deleted}")
    typer.echo(f"  Analyses pruned:          {report.pruning.deleted} of {report.pruning.processed}")
    typer.echo(f"  Knowledge base:           {report.stats.total_files} files, {report.stats.total_kb}KB")
    typer.echo("[OK] Maintenance complete.")


@app.command("export-snapshot")
def export_snapshot(
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Write the read-only performance snapshot."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = _build_jobs(config).export_snapshot()
    if path is None:
        typer.echo("[ERROR] Snapshot export failed; see log for details.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"[OK] Snapshot written to {path}")


@app.command("show-performance")
def show_performance(
    config_path: Optional[str] = _CONFIG_OPTION,
    recent: int = typer.Option(10, "--recent", help="How many recent calls to list."),
) -> None:
    """Print accuracy, weekly scores and the most recent calls."""
    from market_analyst.reporting.formatters import (
        format_performance_summary,
        format_recommendations_table,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    jobs = _build_jobs(config)
    perf = jobs.recommendations.load()
    typer.echo(format_performance_summary(perf, jobs.knowledge.stats()))
    if recent > 0:
        typer.echo(format_recommendations_table(perf.recommendations[-recent:], "Recent Calls"))


@app.command("record-call")
def record_call(
    ticker: str = typer.Argument(..., help="Ticker symbol."),
    direction: str = typer.Argument(..., help="bullish | bearish | neutral"),
    confidence: int = typer.Option(50, "--confidence", help="0-100."),
    call_type: str = typer.Option("manual", "--type", help="Origin of the call."),
    summary: str = typer.Option("", "--summary", help="Short description."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Append a directional call to the ledger."""
    from market_analyst.models.recommendation import VALID_DIRECTIONS

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    direction = direction.lower()
    if direction not in VALID_DIRECTIONS:
        typer.echo(
            f"[ERROR] direction must be one of {sorted(VALID_DIRECTIONS)}, got '{direction}'.",
            err=True,
        )
        raise typer.Exit(code=1)
    if not 0 <= confidence <= 100:
        typer.echo(f"[ERROR] --confidence must be in [0, 100], got {confidence}.", err=True)
        raise typer.Exit(code=1)

    rec = _build_jobs(config).recommendations.record(
        ticker=ticker,
        direction=direction,
        confidence=confidence,
        type=call_type,
        summary=summary or f"{direction} on {ticker.upper()}",
    )
    typer.echo(f"[OK] Recorded {rec.id}")


@app.command("pending-reviews")
def pending_reviews(
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List calls eligible for the next nightly review."""
    from market_analyst.reporting.formatters import format_recommendations_table

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    pending = _build_jobs(config).recommendations.pending_reviews()
    typer.echo(format_recommendations_table(pending, f"Pending Reviews ({len(pending)})"))


@app.command("watchlist")
def watchlist(
    add: Optional[str] = typer.Option(None, "--add", help="Ticker to add."),
    remove: Optional[str] = typer.Option(None, "--remove", help="Ticker to remove."),
    added_by: str = typer.Option("cli", "--by", help="Who added the ticker."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show the watchlist, optionally adding or removing one ticker first."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    store = _build_jobs(config).watchlist
    if add:
        ok = store.add(add, added_by=added_by)
        typer.echo(f"[OK] Added {add.upper()}" if ok else f"{add.upper()} is already on the watchlist.")
    if remove:
        ok = store.remove(remove)
        typer.echo(f"[OK] Removed {remove.upper()}" if ok else f"{remove.upper()} is not on the watchlist.")

    tickers = store.tickers()
    typer.echo(f"Watchlist: {', '.join(tickers) if tickers else '(empty)'}")


@app.command("profile")
def profile(
    style: Optional[list[str]] = typer.Option(None, "--style", help="Trading style to add (repeatable)."),
    sector: Optional[list[str]] = typer.Option(None, "--sector", help="Preferred sector to add (repeatable)."),
    insight: Optional[str] = typer.Option(None, "--insight", help="Something learned about the investor."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show the investor profile, optionally updating it first."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    store = _build_jobs(config).profile
    if style:
        store.update_style(style)
    if sector:
        store.update_sectors(sector)
    if insight and insight.strip():
        store.add_insight(insight)

    typer.echo(store.build_investor_context())


@app.command("record-trade")
def record_trade(
    ticker: str = typer.Argument(..., help="Ticker symbol."),
    action: str = typer.Argument(..., help="BUY | SELL | CALL | PUT | CLOSE | WATCH"),
    reasoning: str = typer.Option("", "--reasoning", help="Why the investor took the trade."),
    price: Optional[str] = typer.Option(None, "--price", help="Fill price."),
    outcome: Optional[str] = typer.Option(None, "--outcome", help="WIN | LOSS | BREAKEVEN | OPEN"),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Log a trade the investor reported and update their win/loss stats."""
    from market_analyst.models.profile import TRADE_ACTIONS, TRADE_OUTCOMES, TradeRecord
    from market_analyst.utils.time_utils import local_today

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    action = action.upper()
    if action not in TRADE_ACTIONS:
        typer.echo(f"[ERROR] action must be one of {sorted(TRADE_ACTIONS)}, got '{action}'.", err=True)
        raise typer.Exit(code=1)
    if outcome is not None:
        outcome = outcome.upper()
        if outcome not in TRADE_OUTCOMES:
            typer.echo(f"[ERROR] --outcome must be one of {sorted(TRADE_OUTCOMES)}, got '{outcome}'.", err=True)
            raise typer.Exit(code=1)

    jobs = _build_jobs(config)
    trade = TradeRecord(
        ticker=ticker.upper(),
        action=action,
        reasoning=reasoning,
        date=local_today(jobs.clock, config.scheduler.timezone).isoformat(),
        price=price,
        outcome=outcome,
    )
    jobs.profile.record_trade(trade)
    typer.echo(f"[OK] Recorded {action} {trade.ticker} on {trade.date}")


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
