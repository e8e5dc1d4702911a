"""
market_analyst.reporting — snapshot export and terminal formatting.

Nothing here mutates analyst state; every function reads already-loaded
documents.

Modules:
  snapshot   — markdown snapshot written for an external reader.
  formatters — ASCII terminal tables for Typer CLI commands.
"""
