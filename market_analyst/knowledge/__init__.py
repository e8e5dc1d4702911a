"""
market_analyst.knowledge — the analyst's markdown knowledge base.

Modules:
  store       — ``KnowledgeStore``: list/read/write/delete ``*.md`` artifacts.
  maintenance — consolidation and pruning sweeps.
"""
