"""Deal stage history and the time-in-stage analytics built on it.

A deal's history is an ordered list of :class:`StageHistoryEntry`.  At
most one entry is open (``exited_at is None``) and, when present, it is
the last one and matches the deal's current stage.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence

from app.schemas.deal import (
    CurrentStageMetric,
    HistoricalStageMetric,
    StageDurationAnalytics,
    StageHistoryEntry,
)

logger = logging.getLogger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _elapsed_ms(start: datetime, end: datetime) -> int:
    return max(0, int((_aware(end) - _aware(start)).total_seconds() * 1000))


class StageHistoryTracker:
    @staticmethod
    def open_history(stage: Any, now: Optional[datetime] = None) -> List[StageHistoryEntry]:
        """History for a brand-new deal: one open entry for *stage*."""
        return [
            StageHistoryEntry(stage=getattr(stage, "value", stage), entered_at=_now(now))
        ]

    @staticmethod
    def transition(
        history: Optional[Sequence[StageHistoryEntry]],
        new_stage: Any,
        now: Optional[datetime] = None,
    ) -> List[StageHistoryEntry]:
        """Close the open entry (if any) and open one for *new_stage*."""
        now = _now(now)
        updated = list(history or [])
        if updated and updated[-1].is_open:
            last = updated[-1]
            updated[-1] = last.model_copy(
                update={
                    "exited_at": now,
                    "duration": _elapsed_ms(last.entered_at, now),
                }
            )
        updated.append(
            StageHistoryEntry(stage=getattr(new_stage, "value", new_stage), entered_at=now)
        )
        return updated


def stage_duration_analytics(
    deals: Iterable[Any], now: Optional[datetime] = None
) -> StageDurationAnalytics:
    """Aggregate average time per stage across *deals*.

    Closed entries feed the ``historical`` averages.  Each deal's open
    entry feeds the ``current`` averages under the deal's current stage,
    measured up to *now*.
    """
    now = _now(now)
    historical = defaultdict(HistoricalStageMetric)
    current = defaultdict(CurrentStageMetric)

    for deal in deals:
        history = deal.stage_history or []
        for entry in history:
            if entry.is_open:
                continue
            metric = historical[entry.stage]
            metric.total_duration += entry.duration
            metric.completed_transitions += 1

        if history and history[-1].is_open:
            metric = current[deal.stage]
            metric.total_current_duration += _elapsed_ms(history[-1].entered_at, now)
            metric.active_deals += 1

    for metric in historical.values():
        metric.average_duration = metric.total_duration / metric.completed_transitions
    for metric in current.values():
        metric.average_current_duration = (
            metric.total_current_duration / metric.active_deals
        )

    return StageDurationAnalytics(historical=dict(historical), current=dict(current))
