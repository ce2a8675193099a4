"""
Session snapshot store.

Keeps the last known copy of each account, as reported by the identity
provider, in the accountSessions collection. The settings form reads it at
open time and it is refreshed after every run that changed something.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth.base import IdentityProvider
from account_settings.models import AccountProfile

logger = logging.getLogger(__name__)


class SessionStore:
    """
    Account snapshot CRUD on MongoDB.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "accountSessions"):
        """
        Initialize SessionStore.

        Args:
            db: MongoDB database connection
            collection_name: Collection holding one snapshot per account
        """
        self._db = db
        self._sessions_collection = db[collection_name]

    async def ensure_indexes(self) -> None:
        """One snapshot per account."""
        await self._sessions_collection.create_index("userId", unique=True)

    async def get_snapshot(self, user_id: str) -> Optional[AccountProfile]:
        """
        Read the stored snapshot.

        Args:
            user_id: Identity provider account ID

        Returns:
            AccountProfile, or None if no snapshot exists yet
        """
        doc = await self._sessions_collection.find_one({"userId": user_id})
        if not doc:
            return None
        return AccountProfile.from_document(doc)

    async def save_snapshot(self, profile: AccountProfile) -> None:
        """Upsert a snapshot."""
        now = datetime.now(timezone.utc)

        await self._sessions_collection.update_one(
            {"userId": profile.user_id},
            {
                "$set": {**profile.to_dict(), "refreshedAt": now},
                "$setOnInsert": {"createdAt": now},
            },
            upsert=True
        )

    async def refresh(
        self,
        user_id: str,
        identity_provider: IdentityProvider
    ) -> AccountProfile:
        """
        Re-read the account from the provider and replace the snapshot.

        Args:
            user_id: Identity provider account ID
            identity_provider: Provider bound to the same user

        Returns:
            The fresh AccountProfile
        """
        account = await identity_provider.get_current_account()
        profile = AccountProfile.from_provider(account)

        if profile.user_id != user_id:
            raise ValueError(
                f"Provider returned account {profile.user_id} while refreshing {user_id}"
            )

        await self.save_snapshot(profile)
        logger.info(f"Session snapshot refreshed for user {user_id}")
        return profile
