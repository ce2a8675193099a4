"""
Pydantic models for account settings request/response validation.
"""

from typing import Literal, Optional
from pydantic import BaseModel


AvatarActionField = Literal["unchanged", "set", "reset"]


# =============================================================================
# Response Schemas (used inside success_response data)
# =============================================================================

class AccountSnapshot(BaseModel):
    """GET /api/account"""
    userId: str
    displayName: Optional[str] = None
    email: Optional[str] = None
    emailVerified: bool = False
    avatarReference: Optional[str] = None

