"""
Flat-directory store of markdown knowledge artifacts.

Layout::

    data/brain/
      morning-brief-2024-01-02.md
      eod-recap-2024-01-02.md
      nightly-review-2024-01-02.md
      weekly-summary-2024-01-01.md
      analysis-NVDA-2024-01-03.md

Artifacts are keyed by filename.  The category is the filename prefix and
most names embed a ``YYYY-MM-DD`` date.  The file's modification time is
the ``modified_at`` that retention sweeps compare against.

Only ``*.md`` files are listed.  Unreadable artifacts are skipped with a
warning rather than failing a listing or a context build.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from market_analyst.models.knowledge import KnowledgeArtifact, KnowledgeStats

logger = logging.getLogger(__name__)


class KnowledgeStore:
    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, name: str) -> Path:
        return self.root / name

    def list_artifacts(self) -> list[KnowledgeArtifact]:
        """All ``*.md`` artifacts, oldest modification first.

        Ties on modification time are broken by name so the order is stable.
        """
        if not self.root.is_dir():
            return []

        artifacts: list[KnowledgeArtifact] = []
        for path in self.root.glob("*.md"):
            try:
                stat = path.stat()
            except OSError as exc:
                logger.warning("Could not stat knowledge artifact %s: %s", path.name, exc)
                continue
            artifacts.append(
                KnowledgeArtifact(
                    name=path.name,
                    size=stat.st_size,
                    modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        artifacts.sort(key=lambda a: (a.modified_at, a.name))
        return artifacts

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def read(self, name: str) -> Optional[str]:
        """Return an artifact's text, or ``None`` if it cannot be read."""
        try:
            return self.path_for(name).read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("Could not read knowledge artifact %s: %s", name, exc)
            return None

    def write(self, name: str, content: str) -> Optional[Path]:
        """Create or overwrite an artifact.  Returns ``None`` on failure."""
        path = self.path_for(name)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            logger.error("Could not write knowledge artifact %s: %s", name, exc)
            return None
        logger.debug("Saved knowledge artifact %s (%d chars)", name, len(content))
        return path

    def delete(self, name: str) -> bool:
        try:
            self.path_for(name).unlink()
        except OSError as exc:
            logger.warning("Could not delete knowledge artifact %s: %s", name, exc)
            return False
        return True

    def stats(self) -> KnowledgeStats:
        artifacts = self.list_artifacts()
        return KnowledgeStats(
            total_files=len(artifacts),
            total_bytes=sum(a.size for a in artifacts),
            oldest_file=artifacts[0].name if artifacts else None,
            newest_file=artifacts[-1].name if artifacts else None,
        )

    def recent_context(self, files: int = 8, chars: int = 1500) -> str:
        """Excerpts of the most recently modified artifacts, newest first.

        Returns an empty string when nothing is readable.
        """
        sections: list[str] = []
        for artifact in reversed(self.list_artifacts()[-files:] if files > 0 else []):
            content = self.read(artifact.name)
            if content is None:
                continue
            sections.append(f"### {artifact.name}\n{content[:chars]}")
        if not sections:
            return ""
        return "## Knowledge Base\n" + "\n\n".join(sections)
