"""
Run control for account updates.

SubmissionGuard keeps runs for the same account from interleaving;
CancellationToken lets the caller abandon a run whose requester went away.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Set

from common.utils.exceptions import ConflictException

logger = logging.getLogger(__name__)


class RunCancelled(Exception):
    """Raised between steps once the run's token has been cancelled."""


class CancellationToken:
    """Cooperative cancellation flag checked between steps."""

    def __init__(self):
        self._cancelled = False
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if not self._cancelled:
            self._cancelled = True
            self._reason = reason

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise RunCancelled(self._reason)


class SubmissionGuard:
    """
    Single-flight guard keyed by account.

    A second submission for an account that already has a run in flight is
    rejected, not queued. Process-local; all runs share one event loop.
    """

    def __init__(self):
        self._in_flight: Set[str] = set()

    def is_in_flight(self, user_id: str) -> bool:
        return user_id in self._in_flight

    @asynccontextmanager
    async def acquire(self, user_id: str) -> AsyncIterator[None]:
        """
        Hold the account for the duration of a run.

        Raises:
            ConflictException: A run for this account is already in flight
        """
        if user_id in self._in_flight:
            logger.warning(f"Rejected concurrent account update for user {user_id}")
            raise ConflictException(
                message="An account update is already in progress",
                code="UPDATE_IN_PROGRESS"
            )

        self._in_flight.add(user_id)
        try:
            yield
        finally:
            self._in_flight.discard(user_id)
