"""
System prompt assembly.

Every collaborator request carries a system prompt built from four parts,
joined in this order and skipping any that are empty:

  1. the persona (``llm.system_prompt_path``, or a built-in one-liner)
  2. the investor context from the profile store
  3. the performance context from the recommendation ledger
  4. excerpts of the most recently modified knowledge artifacts

The persona file is read once and cached; ``reload()`` drops the cache.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from market_analyst.config import KnowledgeConfig
from market_analyst.knowledge.store import KnowledgeStore
from market_analyst.store.performance import RecommendationStore
from market_analyst.store.profile import ProfileStore

logger = logging.getLogger(__name__)

DEFAULT_PERSONA = (
    "You are {name}, a sharp and data-driven trading analyst. Be concise and direct."
)


def load_persona(path: Optional[Path], analyst_name: str = "Neutron") -> str:
    """Read the persona file, falling back to the built-in persona."""
    if path is not None:
        try:
            text = Path(path).read_text(encoding="utf-8").strip()
            if text:
                return text
        except OSError as exc:
            logger.warning("Could not read persona file %s: %s; using default", path, exc)
    return DEFAULT_PERSONA.format(name=analyst_name)


def build_system_prompt(
    persona: str,
    investor_context: str = "",
    performance_context: str = "",
    knowledge_context: str = "",
) -> str:
    parts = [persona]
    if investor_context:
        parts.append(investor_context)
    if performance_context:
        parts.append(f"## Your Performance\n{performance_context}")
    if knowledge_context:
        parts.append(knowledge_context)
    return "\n\n".join(parts)


class SystemPromptBuilder:
    """Callable that assembles a fresh system prompt from live state."""

    def __init__(
        self,
        persona_path: Optional[Path],
        recommendations: RecommendationStore,
        profile: ProfileStore,
        knowledge: KnowledgeStore,
        knowledge_config: Optional[KnowledgeConfig] = None,
        analyst_name: str = "Neutron",
    ) -> None:
        self.persona_path = persona_path
        self.recommendations = recommendations
        self.profile = profile
        self.knowledge = knowledge
        self.knowledge_config = knowledge_config or KnowledgeConfig()
        self.analyst_name = analyst_name
        self._persona: Optional[str] = None

    def reload(self) -> None:
        self._persona = None

    def persona(self) -> str:
        if self._persona is None:
            self._persona = load_persona(self.persona_path, self.analyst_name)
        return self._persona

    def __call__(self) -> str:
        return build_system_prompt(
            self.persona(),
            investor_context=self.profile.build_investor_context(),
            performance_context=self.recommendations.performance_context(),
            knowledge_context=self.knowledge.recent_context(
                files=self.knowledge_config.context_files,
                chars=self.knowledge_config.context_chars,
            ),
        )
