import asyncio
import logging
from typing import Awaitable, Callable, Sequence

from app.core.exceptions import CRMError
from app.schemas.common import BulkFailure, BulkResult

logger = logging.getLogger(__name__)


async def run_bulk(
    ids: Sequence[int],
    operation: Callable[[int], Awaitable[None]],
    label: str,
) -> BulkResult:
    """Apply *operation* to every id concurrently.

    Items are independent: one failure neither stops nor rolls back the
    others.  Each failure is logged and reported in the result.
    """
    outcomes = await asyncio.gather(
        *(operation(item_id) for item_id in ids), return_exceptions=True
    )

    failures = []
    for item_id, outcome in zip(ids, outcomes):
        if not isinstance(outcome, BaseException):
            continue
        if isinstance(outcome, CRMError):
            message = outcome.detail
        else:
            message = str(outcome) or outcome.__class__.__name__
            logger.warning(
                "%s failed for id %s", label, item_id, exc_info=outcome
            )
        failures.append(BulkFailure(id=item_id, message=message))

    result = BulkResult(
        updated=len(ids) - len(failures), total=len(ids), failures=failures
    )
    logger.info("%s: %d/%d updated", label, result.updated, result.total)
    return result
