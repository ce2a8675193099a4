"""
Credential gate for sensitive account changes.

Password and email changes need a fresh proof of the current password. The
gate performs that re-authentication at most once per submission and
remembers the result, so a run that changes both fields re-authenticates once
and a failed attempt is never retried within the run.
"""

import logging
from enum import Enum
from typing import Optional

from common.auth.base import IdentityProvider
from common.utils.exceptions import APIException, ReauthenticationException

from account_settings.models import Credential, MutationStep

logger = logging.getLogger(__name__)


class ReauthState(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


class CredentialGate:
    """
    Per-run re-authentication state machine.

    NOT_AUTHENTICATED -> AUTHENTICATING -> AUTHENTICATED | FAILED

    Create one gate per run; never share it between submissions.
    """

    def __init__(self, identity_provider: IdentityProvider):
        """
        Args:
            identity_provider: Provider bound to the signed-in user
        """
        self._identity_provider = identity_provider
        self._state = ReauthState.NOT_AUTHENTICATED
        self._failure: Optional[ReauthenticationException] = None
        self._attempts = 0

    @property
    def state(self) -> ReauthState:
        return self._state

    @property
    def attempts(self) -> int:
        """Number of re-authentication calls issued by this gate."""
        return self._attempts

    @staticmethod
    def requires_reauthentication(step: MutationStep) -> bool:
        return step.gated

    async def ensure_authenticated(self, credential: Credential) -> None:
        """
        Re-authenticate unless this run already did.

        Args:
            credential: Current email and current password

        Raises:
            ReauthenticationException: The provider rejected the credential,
                now or earlier in this run
        """
        if self._state == ReauthState.AUTHENTICATED:
            return

        if self._state == ReauthState.FAILED:
            raise self._failure

        if self._state == ReauthState.AUTHENTICATING:
            # Runs are sequential; a re-entrant call means a caller bug
            raise RuntimeError("Re-authentication already in progress for this run")

        self._state = ReauthState.AUTHENTICATING
        self._attempts += 1

        try:
            await self._identity_provider.reauthenticate(
                credential.identifier,
                credential.secret,
            )
        except ReauthenticationException as e:
            self._fail(e)
            raise
        except APIException as e:
            failure = ReauthenticationException(message=e.message, code=e.code)
            self._fail(failure)
            raise failure
        except Exception as e:
            logger.exception("Unexpected error during re-authentication")
            failure = ReauthenticationException(
                message="Could not verify the current password",
                code="REAUTHENTICATION_FAILED",
            )
            self._fail(failure)
            raise failure from e

        self._state = ReauthState.AUTHENTICATED
        logger.debug("Re-authentication succeeded for this run")

    def _fail(self, error: ReauthenticationException) -> None:
        self._state = ReauthState.FAILED
        self._failure = error
        logger.info(f"Re-authentication failed: {error.code}")
