"""
market_analyst.llm — the text-generation collaborator.

Modules:
  client  — ``TextGenerator`` protocol and the Messages API implementation.
  prompts — persona loading and per-request system prompt assembly.
"""
