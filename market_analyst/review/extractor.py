"""
Best-effort extraction of review verdicts from collaborator prose.

Line protocol
-------------
The nightly review prompt asks the collaborator to answer with one line per
recommendation::

    REVIEW: [<id>] | <correct|wrong|partial|skip> | <notes>

followed by one optional trailing line::

    LESSON: <takeaway>

Keywords are case-insensitive and the line may carry leading decoration
(list bullets, bold markers).  ``skip`` verdicts are dropped; the call stays
pending and competes for a slot in a later cycle.

Parsing never raises on bad input.  Lines that do not fit the grammar are
counted in ``ReviewParseResult.unparsed_lines`` and otherwise ignored, so a
malformed response degrades to fewer updates rather than failing the batch.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from market_analyst.models.recommendation import Recommendation, ReviewUpdate

logger = logging.getLogger(__name__)

REVIEW_LINE_RE = re.compile(
    r"REVIEW:\s*\[?([^\]|]+)\]?\s*\|\s*(correct|wrong|partial|skip)\s*\|\s*(.+)",
    re.IGNORECASE,
)
LESSON_LINE_RE = re.compile(r"LESSON:\s*(.+)", re.IGNORECASE)

DEFAULT_BATCH_SIZE = 15


@dataclass
class ReviewParseResult:
    """Structured output of one review pass.

    Attributes:
        updates:        Verdicts to apply, in response order.
        lesson:         The trailing lesson, if any.
        skipped_ids:    Ids the reviewer explicitly skipped.
        unparsed_lines: Non-blank lines that matched neither grammar.
    """

    updates:        list[ReviewUpdate] = field(default_factory=list)
    lesson:         Optional[str] = None
    skipped_ids:    list[str] = field(default_factory=list)
    unparsed_lines: int = 0

    @property
    def tally(self) -> dict[str, int]:
        counts = {"correct": 0, "wrong": 0, "partial": 0}
        for u in self.updates:
            counts[u.outcome] += 1
        return counts


def select_batch(
    pending: list[Recommendation],
    size: int = DEFAULT_BATCH_SIZE,
) -> list[Recommendation]:
    """Keep the ``size`` most recent eligible calls, oldest first."""
    return pending[-size:] if size > 0 else []


def render_batch(batch: list[Recommendation]) -> str:
    """Render calls as the enumerated list the collaborator reviews."""
    return "\n\n".join(
        f"{i}. [{r.id}] {r.date} - {r.direction} on {r.ticker} ({r.confidence}% confidence)\n"
        f"   Summary: {r.summary}"
        for i, r in enumerate(batch, start=1)
    )


def build_review_prompt(batch: list[Recommendation], analyst_name: str = "Neutron") -> str:
    return f"""You are {analyst_name} doing your nightly self-review. Below are your recent trading recommendations that need outcome evaluation.

For EACH recommendation, evaluate:
1. Was the call CORRECT, WRONG, or PARTIAL? Use today's market data and what you know about recent price action.
2. Brief notes on why (1-2 sentences).

If you genuinely can't evaluate a recommendation (stock hasn't moved enough, too early), say "skip" for that one.

Also, at the end, write ONE strategy lesson you learned from reviewing these calls - something specific and actionable about your own analysis patterns.

## Pending Recommendations
{render_batch(batch)}

## Response Format
For each recommendation, respond with EXACTLY this format (one per line):
REVIEW: [id] | [correct/wrong/partial/skip] | [brief notes]

Then at the end:
LESSON: [your key takeaway]"""


def parse_review_response(text: str) -> ReviewParseResult:
    """Parse collaborator prose into verdicts and an optional lesson.

    When several ``LESSON:`` lines appear, the last non-empty one wins.
    """
    result = ReviewParseResult()
    if not text:
        return result

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        review = REVIEW_LINE_RE.search(line)
        if review:
            rec_id = review.group(1).strip()
            outcome = review.group(2).lower()
            notes = review.group(3).strip()
            if not rec_id:
                result.unparsed_lines += 1
                continue
            if outcome == "skip":
                result.skipped_ids.append(rec_id)
                continue
            result.updates.append(ReviewUpdate(id=rec_id, outcome=outcome, notes=notes))
            continue

        lesson = LESSON_LINE_RE.search(line)
        if lesson:
            lesson_text = lesson.group(1).strip().strip("*").strip()
            if lesson_text:
                result.lesson = lesson_text
            continue

        result.unparsed_lines += 1

    logger.debug(
        "Parsed review: %d update(s), %d skipped, %d unparsed line(s), lesson=%s",
        len(result.updates), len(result.skipped_ids), result.unparsed_lines,
        result.lesson is not None,
    )
    return result
