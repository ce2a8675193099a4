"""
Turns a finished run into the single result the user sees.
"""

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from common.auth.base import IdentityProvider

from account_settings.models import Outcome
from account_settings.services.account.orchestrator import RunResult
from account_settings.services.account.run_control import CancellationToken
from account_settings.services.session.session_store import SessionStore

logger = logging.getLogger(__name__)

Presenter = Callable[[Outcome], Union[None, Awaitable[None]]]


class ResultReporter:
    """
    Reports exactly one outcome per run.

    Success yields one success signal. Failure yields the first error's
    message verbatim; there is no partial-success report, no rollback and no
    retry. Whenever at least one step was applied the session snapshot is
    refreshed, so the next form open shows what the provider now holds.
    """

    SUCCESS_MESSAGE = "Account settings saved"
    CANCELLED_MESSAGE = "The account update was cancelled"

    def __init__(
        self,
        session_store: SessionStore,
        presenter: Optional[Presenter] = None
    ):
        """
        Args:
            session_store: Snapshot store to refresh
            presenter: Optional sink for the outcome (the view)
        """
        self._session_store = session_store
        self._presenter = presenter

    async def report(
        self,
        result: RunResult,
        user_id: str,
        identity_provider: IdentityProvider,
        token: Optional[CancellationToken] = None
    ) -> Outcome:
        """
        Refresh the session if needed and build the outcome.

        Args:
            result: What the run did
            user_id: Account ID
            identity_provider: Provider bound to the same user, for the refresh
            token: The run's cancellation token

        Returns:
            Outcome for the presentation layer
        """
        if result.applied_steps:
            await self._refresh_session(user_id, identity_provider)

        if result.cancelled:
            outcome = Outcome.failed(
                self.CANCELLED_MESSAGE,
                code="UPDATE_CANCELLED",
                applied_steps=result.applied_steps,
            )
            outcome.cancelled = True
        elif result.error is not None:
            outcome = Outcome.failed(
                result.error.message,
                code=result.error.code,
                applied_steps=result.applied_steps,
                status_code=result.error.status_code,
            )
        else:
            outcome = Outcome.succeeded(self.SUCCESS_MESSAGE, result.applied_steps)

        if token is not None and token.cancelled:
            # Requester is gone
            outcome.cancelled = True
            logger.info(f"Dropping account update result for user {user_id}: {token.reason}")
            return outcome

        if self._presenter is not None:
            presented = self._presenter(outcome)
            if inspect.isawaitable(presented):
                await presented

        return outcome

    async def _refresh_session(
        self,
        user_id: str,
        identity_provider: IdentityProvider
    ) -> None:
        try:
            await self._session_store.refresh(user_id, identity_provider)
        except Exception as e:
            # Changes are already applied, the outcome stands
            logger.warning(f"Session refresh failed for user {user_id}: {e}")
