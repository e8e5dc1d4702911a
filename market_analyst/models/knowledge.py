"""
Knowledge store result types.

These are plain frozen dataclasses rather than pydantic models: they are
never persisted, only passed between the store, the maintenance sweeps and
the exporter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from market_analyst.utils.time_utils import round_half_up


@dataclass(frozen=True)
class KnowledgeArtifact:
    """A dated text artifact in the knowledge store.

    Attributes:
        name:        Filename, e.g. ``"morning-brief-2024-01-02.md"``.
        size:        Size in bytes.
        modified_at: Last modification time (aware, UTC).  The sole
                     temporal signal driving retention.
    """

    name:        str
    size:        int
    modified_at: datetime

    def has_prefix(self, prefixes: list[str] | tuple[str, ...]) -> bool:
        return any(self.name.startswith(p) for p in prefixes)


@dataclass(frozen=True)
class SweepResult:
    """Outcome counts of one maintenance sweep.

    Attributes:
        processed: Consolidation: summaries written.  Pruning: aged
                   artifacts selected for deletion.
        deleted:   Artifacts actually removed.
    """

    processed: int = 0
    deleted:   int = 0

    @property
    def changed(self) -> bool:
        return self.processed > 0 or self.deleted > 0


@dataclass(frozen=True)
class KnowledgeStats:
    """Size statistics for the knowledge store."""

    total_files: int
    total_bytes: int
    oldest_file: Optional[str]
    newest_file: Optional[str]

    @property
    def total_kb(self) -> int:
        return round_half_up(self.total_bytes / 1024)
