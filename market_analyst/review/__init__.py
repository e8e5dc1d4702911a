"""
market_analyst.review — turning collaborator prose into structured records.

Modules:
  extractor   — nightly review prompt and ``REVIEW:``/``LESSON:`` line parser.
  scan_calls  — directional calls mentioned in scheduled scan prose.
  aggregation — weekly tally, accuracy and narrative extraction.
"""
