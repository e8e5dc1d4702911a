"""
Whole-document JSON persistence.

Every aggregate document (performance ledger, investor profile, watchlist)
is stored as one JSON file and follows read-modify-write: load the entire
document, change an in-memory copy, write the whole document back.

Failure policy
--------------
  - Missing file      → the model's empty default (logged at DEBUG).
  - Unreadable / corrupt / schema-invalid file → renamed aside to
    ``<name>.corrupt-<UTC stamp>`` and replaced by the empty default, logged
    at WARNING.  Startup never fails because of a bad document, and the next
    save cannot overwrite the data that failed to load.
  - Write failure     → logged at ERROR and reported via the return value;
    never raised past the store.

There is no locking.  This is safe for a single scheduling process with
sequential job triggering and NOT safe for concurrent writers in several
processes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from market_analyst.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonDocument(Generic[ModelT]):
    """A pydantic model persisted as a single JSON file.

    Args:
        path:    File location (parent dirs created on first save).
        model:   The pydantic model class of the document root.
        default: Factory for the empty document used when loading fails.
                 Defaults to ``model()``.
    """

    def __init__(
        self,
        path: Path,
        model: type[ModelT],
        default: Callable[[], ModelT] | None = None,
    ) -> None:
        self.path = Path(path)
        self.model = model
        self._default = default or model

    def load(self) -> ModelT:
        """Return the stored document, or the empty default."""
        if not self.path.exists():
            logger.debug("No document at %s; using empty default", self.path)
            return self._default()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return self.model.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.warning(
                "Could not load %s (%s); falling back to empty default",
                self.path, exc.__class__.__name__,
            )
            self._set_aside()
            return self._default()

    def _set_aside(self) -> Path | None:
        """Rename an unloadable file so a later save starts from a clean slate."""
        stamp = utcnow().strftime("%Y%m%dT%H%M%SZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        n = 1
        while target.exists():
            target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}-{n}")
            n += 1
        try:
            self.path.rename(target)
        except OSError as exc:
            logger.error("Could not move %s aside: %s", self.path, exc)
            return None
        logger.warning("Kept unreadable document as %s", target.name)
        return target

    def save(self, document: ModelT) -> bool:
        """Overwrite the file with ``document``.  Returns ``False`` on I/O failure."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                document.model_dump_json(by_alias=True, indent=2),
                encoding="utf-8",
            )
            return True
        except OSError as exc:
            logger.error("Failed to write %s: %s", self.path, exc)
            return False
