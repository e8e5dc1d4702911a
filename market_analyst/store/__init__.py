"""
market_analyst.store — whole-document JSON persistence.

Modules:
  documents   — ``JsonDocument``: load-with-default / overwrite-on-save.
  performance — ``RecommendationStore``: the call ledger, weekly scores,
                strategy notes and last-review markers.
  profile     — ``ProfileStore``: what the analyst knows about its investor.
  watchlist   — ``WatchlistStore``: tickers covered by scheduled scans.
"""
