"""Tests for review/scan_calls.py — directional calls in scan prose."""

from __future__ import annotations

from market_analyst.review.scan_calls import ScanCall, extract_scan_calls


def test_direction_before_ticker() -> None:
    calls = extract_scan_calls("Bullish on $NVDA into earnings. Bearish TSLA below 240.")
    assert calls == [ScanCall("NVDA", "bullish"), ScanCall("TSLA", "bearish")]


def test_ticker_before_direction_in_same_sentence() -> None:
    calls = extract_scan_calls("AMD looks neutral here. Volume was light.")
    assert calls == [ScanCall("AMD", "neutral")]


def test_direction_does_not_cross_sentences() -> None:
    assert extract_scan_calls("Watching AAPL. Overall I stay bullish") == []


def test_stop_words_are_not_tickers() -> None:
    text = "I am bullish on IT names. THE tape is bearish AND weak."
    assert extract_scan_calls(text) == []


def test_lowercase_words_are_not_tickers() -> None:
    assert extract_scan_calls("bullish on the open, bearish into the close") == []


def test_one_call_per_ticker_first_wins() -> None:
    calls = extract_scan_calls("Bullish on MSFT. Later MSFT turned bearish.")
    assert calls == [ScanCall("MSFT", "bullish")]


def test_no_calls_in_plain_prose() -> None:
    assert extract_scan_calls("Futures flat overnight; CPI at 8:30.") == []
