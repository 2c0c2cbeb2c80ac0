"""
StayHub Backend: User Counters
===============================

What:  Atomic increments of the denormalised user_stats counters.
How:   A single UPDATE ... SET n = GREATEST(n + delta, 0), executed on the
       caller's session so it commits or rolls back together with the row
       that caused it.
"""

import logging
import uuid
from typing import Literal

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession

from stayhub.models.user import UserStats

logger = logging.getLogger(__name__)

Counter = Literal["bookings", "favorites", "reviews"]


async def increment_counter(
    session: AsyncSession,
    user_id: uuid.UUID,
    counter: Counter,
    delta: int = 1,
) -> None:
    """
    Add `delta` to one counter, clamped at zero.

    A user without a stats row is left alone (logged); the profile bootstrap
    creates that row, so a miss means the row was deleted out of band.
    """
    column = getattr(UserStats, counter)
    result = await session.execute(
        update(UserStats)
        .where(UserStats.user_id == user_id)
        .values({counter: func.greatest(column + delta, 0)})
    )
    if result.rowcount == 0:
        logger.warning("No user_stats row for %s; %s counter not updated", user_id, counter)
