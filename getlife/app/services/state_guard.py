"""
Conditional status transitions.

A status check on an object loaded earlier in the request can be stale by
the time the change is written. transition_status moves a row from one
status to another in a single UPDATE that only matches while the stored
status is still the expected one, so two requests racing on the same row
cannot both win.

Nothing here commits. Callers own the transaction.
"""

import logging
from typing import Any

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from getlife.app.core.exceptions import InvalidStateTransitionError

logger = logging.getLogger("getlife")


async def transition_status(
    db: AsyncSession,
    model,
    row_id: int,
    expected,
    new,
    message: str,
    **values: Any
) -> None:
    """
    Move one row of model from status expected to status new.

    Extra keyword arguments are written in the same UPDATE. The ORM object
    for the row, if loaded, is not refreshed; callers set its attributes
    themselves.

    Raises:
        InvalidStateTransitionError: If the stored status is no longer expected
    """
    stmt = (
        update(model)
        .where(model.id == row_id, model.status == expected)
        .values(status=new, **values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)

    if result.rowcount == 0:
        logger.info(
            "%s %s left %s before the change to %s was written",
            model.__name__, row_id, expected.value, new.value,
        )
        raise InvalidStateTransitionError(message, details={"expected_status": expected.value})
