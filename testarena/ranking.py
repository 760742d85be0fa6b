"""
ranking.py – dense rank ordering of submitted attempts.

Order: score descending, time taken ascending, submission time ascending
(attempt id breaks anything left so the order is total).

Ranks are eventually consistent.  recalculate_ranks() runs after every
submission and walks the population in fixed-size pages, so a reader between
two runs may see ranks computed against a smaller, earlier attempt set.
Overlapping runs are harmless: each derives a complete assignment from the
rows it reads and the last writer wins.
"""

import logging
from typing import Iterable, Optional

from . import config
from .models import Attempt, RankEntry

logger = logging.getLogger(__name__)


def rank_key(attempt: Attempt):
    return (-attempt.score, attempt.time_taken, attempt.submitted_at, attempt.id or 0)


def assign_ranks(attempts: Iterable[Attempt]) -> list[Attempt]:
    """In-memory ranking: sorts submitted attempts and sets ``rank`` 1..M."""
    ranked = sorted(
        (a for a in attempts if a.status == "submitted" and a.submitted_at is not None),
        key=rank_key,
    )
    for position, attempt in enumerate(ranked, start=1):
        attempt.rank = position
    return ranked


def recalculate_ranks(store, test_id: int, batch_size: Optional[int] = None) -> int:
    """Stream submitted attempts in rank order and write ranks batch by batch.

    Memory use is bounded by ``batch_size``; returns the number ranked.
    """
    batch_size = batch_size or config.RANK_BATCH_SIZE
    position = 0
    cursor = None
    while True:
        rows = store.ranked_page(test_id, after=cursor, limit=batch_size)
        if not rows:
            break
        updates = []
        for row in rows:
            position += 1
            updates.append((position, row["id"]))
        store.write_ranks(updates)
        last = rows[-1]
        cursor = (last["score"], last["time_taken"], last["submitted_at"], last["id"])
        if len(rows) < batch_size:
            break
    logger.info("Ranked %d attempts for test %s", position, test_id)
    return position


def rank_list(store, test_id: int, limit: int = 50) -> list[RankEntry]:
    return [
        RankEntry(
            rank=a.rank if a.rank is not None else i,
            user_id=a.user_id,
            score=a.score,
            correct_count=a.correct_count,
            wrong_count=a.wrong_count,
            skipped_count=a.skipped_count,
            accuracy=a.accuracy,
            time_taken=a.time_taken,
            submitted_at=a.submitted_at,
        )
        for i, a in enumerate(store.top_attempts(test_id, limit), start=1)
    ]
