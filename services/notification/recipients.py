"""
Recipient resolution for operator-facing notifications.

The operator list is read when a broadcast attempt runs, never cached, so
operators activated or deactivated after a submission is accepted are
honoured by any broadcast still being dispatched.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.operator import Operator

logger = logging.getLogger(__name__)


class ActiveOperatorRecipients:
    """Resolves the email addresses of all active operators."""

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        if session_factory is None:
            from libs.db import AsyncSessionLocal

            session_factory = AsyncSessionLocal
        self._session_factory = session_factory

    async def __call__(self) -> List[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Operator.email).where(Operator.is_active.is_(True)).order_by(Operator.email)
            )
            emails = list(result.scalars().all())
        logger.debug("Resolved %d active operator recipient(s)", len(emails))
        return emails
