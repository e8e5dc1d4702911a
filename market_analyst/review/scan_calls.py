"""
Directional call extraction from scheduled scan prose.

Morning and end-of-day scans are free text.  Any sentence that pairs an
upper-case ticker with ``bullish``/``bearish``/``neutral`` becomes a call:

    "Bullish on $NVDA into earnings"   -> (NVDA, bullish)
    "AAPL looks bearish below 180."     -> (AAPL, bearish)

Direction words match case-insensitively; tickers must be upper case, and
common upper-case words (``I``, ``THE``, ``AND`` ...) are never tickers.
Only the first call per ticker in a response counts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from market_analyst.models.recommendation import Direction

_DIRECTION = r"(?i:bullish|bearish|neutral)"

# Direction first: "bullish on NVDA", "bearish $TSLA"
_DIRECTION_TICKER_RE = re.compile(
    rf"\b({_DIRECTION})\s+(?:(?i:on)\s+)?\$?([A-Z]{{1,5}})\b"
)
# Ticker first, direction later in the same sentence: "AMD looks bullish"
_TICKER_DIRECTION_RE = re.compile(
    rf"\$?\b([A-Z]{{1,5}})\b[^.\n]*?\b({_DIRECTION})\b"
)

STOP_WORDS: frozenset[str] = frozenset({
    "I", "A", "AM", "PM", "AT", "TO", "IN", "ON", "IS", "IT", "THE", "AND",
    "BUT", "FOR", "NOT", "ALL", "UP", "ANY", "ET", "US", "CEO", "EPS", "GDP",
    "CPI", "FOMC", "FED", "EOD", "ATH", "IPO", "ETF", "AI",
})


@dataclass(frozen=True)
class ScanCall:
    ticker:    str
    direction: Direction


def extract_scan_calls(text: str) -> list[ScanCall]:
    """Return one call per ticker found in ``text``, in discovery order."""
    calls: list[ScanCall] = []
    seen: set[str] = set()

    def _add(ticker: str, direction: str) -> None:
        if ticker in STOP_WORDS or ticker in seen:
            return
        seen.add(ticker)
        calls.append(ScanCall(ticker=ticker, direction=direction.lower()))

    for match in _DIRECTION_TICKER_RE.finditer(text):
        _add(match.group(2), match.group(1))
    for match in _TICKER_DIRECTION_RE.finditer(text):
        _add(match.group(1), match.group(2))

    return calls
