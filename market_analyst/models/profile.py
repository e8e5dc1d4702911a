"""
Investor profile models.

The profile captures what the analyst has learned about its primary investor:
trading style, preferred sectors, recent trades and free-text insights.  It
is persisted as ``investor-profile.json`` and summarised into every
collaborator prompt and into the export snapshot.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

TRADE_ACTIONS: frozenset[str] = frozenset({"BUY", "SELL", "CALL", "PUT", "CLOSE", "WATCH"})
TRADE_OUTCOMES: frozenset[str] = frozenset({"WIN", "LOSS", "BREAKEVEN", "OPEN"})

_ALIASED = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TradeRecord(BaseModel):
    """One trade reported by the investor."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ticker: str
    action: str                     # BUY, SELL, CALL, PUT, CLOSE, WATCH
    reasoning: str
    date: str
    price: Optional[str] = None
    stop: Optional[str] = None
    target: Optional[str] = None
    outcome: Optional[str] = None   # WIN, LOSS, BREAKEVEN, OPEN
    pnl: Optional[str] = None


class InvestorStats(BaseModel):
    model_config = _ALIASED

    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    open: int = 0


class InvestorProfile(BaseModel):
    """Mutable profile document; the store rewrites it whole on every change."""

    model_config = _ALIASED

    username: str = ""
    preferred_sectors: list[str] = []
    trading_style: list[str] = []
    risk_notes: list[str] = []
    trades: list[TradeRecord] = []
    insights: list[str] = []
    watchlist: list[str] = []
    stats: InvestorStats = InvestorStats()
    updated_at: Optional[dt.datetime] = None
