"""Shared watchlist store (``watchlist.json``)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from market_analyst.config import AppConfig
from market_analyst.models.watchlist import Watchlist, WatchlistEntry
from market_analyst.store.documents import JsonDocument
from market_analyst.utils.time_utils import Clock, utcnow

logger = logging.getLogger(__name__)


class WatchlistStore:
    def __init__(self, path: Path, clock: Clock = utcnow) -> None:
        self.document = JsonDocument(Path(path), Watchlist)
        self.clock = clock

    @classmethod
    def from_config(cls, config: AppConfig, clock: Clock = utcnow) -> "WatchlistStore":
        return cls(config.storage.watchlist_path, clock=clock)

    def tickers(self) -> list[str]:
        return self.document.load().tickers

    def contains(self, ticker: str) -> bool:
        return ticker.strip().upper() in self.tickers()

    def add(self, ticker: str, added_by: str, notes: Optional[str] = None) -> bool:
        """Add a ticker.  Returns ``False`` if it was already listed."""
        watchlist = self.document.load()
        normalized = ticker.strip().upper()
        if normalized in watchlist.tickers:
            return False
        watchlist.root = watchlist.root + [
            WatchlistEntry(ticker=normalized, added_at=self.clock(), added_by=added_by, notes=notes)
        ]
        self.document.save(watchlist)
        logger.info("Added %s to the watchlist", normalized)
        return True

    def remove(self, ticker: str) -> bool:
        """Remove a ticker.  Returns ``False`` if it was not listed."""
        watchlist = self.document.load()
        normalized = ticker.strip().upper()
        kept = [e for e in watchlist.entries if e.ticker != normalized]
        if len(kept) == len(watchlist.entries):
            return False
        watchlist.root = kept
        self.document.save(watchlist)
        logger.info("Removed %s from the watchlist", normalized)
        return True
