"""
Shared watchlist models: the tickers the scheduled scans cover.

The document root is a bare JSON array of entries, as earlier deployments
wrote it.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, ConfigDict, RootModel, field_validator
from pydantic.alias_generators import to_camel


class WatchlistEntry(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ticker: str
    added_at: dt.datetime
    added_by: str
    notes: Optional[str] = None

    @field_validator("ticker")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        return v.strip().upper()


class Watchlist(RootModel[list[WatchlistEntry]]):
    root: list[WatchlistEntry] = []

    @property
    def entries(self) -> list[WatchlistEntry]:
        return self.root

    @property
    def tickers(self) -> list[str]:
        return [e.ticker for e in self.root]
