from datetime import datetime, timezone
from typing import List, Optional, Sequence

from app.core.config import settings
from app.schemas.lead import ScoreHistoryEntry


class ScoreHistoryTracker:
    """Keeps a bounded, append-only record of score changes.

    An entry is only written when the score actually changes, so
    re-scoring an untouched lead leaves its history alone.  Once the
    history exceeds ``limit`` entries the oldest ones are dropped.
    """

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit or settings.SCORE_HISTORY_LIMIT

    def append(
        self,
        history: Optional[Sequence[ScoreHistoryEntry]],
        new_score: int,
        reason: str = "Score updated",
        now: Optional[datetime] = None,
    ) -> List[ScoreHistoryEntry]:
        history = list(history or [])
        previous = history[-1].score if history else None
        if previous == new_score:
            return history

        history.append(
            ScoreHistoryEntry(
                score=new_score,
                previous_score=previous,
                timestamp=now or datetime.now(timezone.utc),
                reason=reason,
            )
        )
        return history[-self.limit:]
