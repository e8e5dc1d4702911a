"""
Investor profile store.

Owns ``investor-profile.json``.  Same whole-document semantics as the
performance ledger; a missing or corrupt file yields an empty profile for
the configured primary investor.

Caps: trades 50, insights 20 (oldest dropped first).
"""

from __future__ import annotations

import logging
from pathlib import Path

from market_analyst.config import AppConfig
from market_analyst.models.profile import InvestorProfile, TradeRecord
from market_analyst.store.documents import JsonDocument
from market_analyst.utils.time_utils import Clock, utcnow

logger = logging.getLogger(__name__)

MAX_TRADES = 50
MAX_INSIGHTS = 20


class ProfileStore:
    """Read-modify-write access to the investor profile."""

    def __init__(self, path: Path, username: str, clock: Clock = utcnow) -> None:
        self.username = username
        self.clock = clock
        self.document = JsonDocument(
            Path(path), InvestorProfile, default=lambda: InvestorProfile(username=username)
        )

    @classmethod
    def from_config(cls, config: AppConfig, clock: Clock = utcnow) -> "ProfileStore":
        return cls(config.storage.profile_path, config.investor.username, clock=clock)

    def load(self) -> InvestorProfile:
        return self.document.load()

    def save(self, profile: InvestorProfile) -> bool:
        profile.updated_at = self.clock()
        return self.document.save(profile)

    def record_trade(self, trade: TradeRecord) -> None:
        profile = self.load()
        profile.trades = (profile.trades + [trade])[-MAX_TRADES:]
        stats = profile.stats
        stats.total_trades += 1
        if trade.outcome == "WIN":
            stats.wins += 1
        elif trade.outcome == "LOSS":
            stats.losses += 1
        elif trade.outcome == "BREAKEVEN":
            stats.breakeven += 1
        else:
            stats.open += 1
        self.save(profile)

    def add_insight(self, insight: str) -> None:
        profile = self.load()
        profile.insights = (profile.insights + [insight.strip()])[-MAX_INSIGHTS:]
        self.save(profile)

    def update_style(self, styles: list[str]) -> None:
        profile = self.load()
        profile.trading_style = _merge_unique(profile.trading_style, styles)
        self.save(profile)

    def update_sectors(self, sectors: list[str]) -> None:
        profile = self.load()
        profile.preferred_sectors = _merge_unique(profile.preferred_sectors, sectors)
        self.save(profile)

    def build_investor_context(self) -> str:
        """Summarise the profile for the collaborator's system prompt."""
        p = self.load()
        parts = [f"## Primary Investor: {p.username}"]

        if p.trading_style:
            parts.append(f"**Trading Style:** {', '.join(p.trading_style)}")
        if p.preferred_sectors:
            parts.append(f"**Preferred Sectors:** {', '.join(p.preferred_sectors)}")
        if p.watchlist:
            parts.append(f"**Watchlist:** {', '.join(p.watchlist)}")

        s = p.stats
        if s.total_trades > 0:
            decided = s.wins + s.losses
            win_rate = f"{round(s.wins / decided * 100)}%" if decided else "N/A"
            parts.append(
                f"**Track Record:** {s.total_trades} trades | {s.wins}W / {s.losses}L / "
                f"{s.breakeven}BE / {s.open} open | Win rate: {win_rate}"
            )

        if p.risk_notes:
            parts.append(f"**Risk Notes:** {'; '.join(p.risk_notes[-3:])}")

        if p.insights:
            insights = "\n".join(f"- {i}" for i in p.insights[-5:])
            parts.append(f"**What you've learned about {p.username}:**\n{insights}")

        recent = p.trades[-5:]
        if recent:
            parts.append("**Recent Trades:**")
            for t in recent:
                price = f" @ ${t.price}" if t.price else ""
                outcome = f" [{t.outcome}]" if t.outcome else ""
                parts.append(f"- {t.date}: {t.action} {t.ticker}{price}{outcome} - {t.reasoning[:80]}")

        return "\n".join(parts)


def _merge_unique(existing: list[str], new: list[str]) -> list[str]:
    merged = list(existing)
    for item in new:
        if item not in merged:
            merged.append(item)
    return merged
