# backend/app/services/user_service.py

import logging
from typing import Any, Dict, List, Optional

from app.core.errors import NotFoundError
from app.models import Role, User, UserProfile

logger = logging.getLogger(__name__)


class UserDirectory:
    """Profiles, roles and the saved diet profile of each user."""

    def __init__(self, users):
        self.users = users

    async def onboard(self, profile: UserProfile) -> User:
        fields = profile.model_dump(by_alias=True, exclude={"uid"}, exclude_none=True, mode="json")
        doc = await self.users.update(profile.uid, fields)
        logger.info("Onboarded %s as %s", profile.uid, profile.role.value)
        return User.model_validate(doc)

    async def find(self, uid: str) -> Optional[User]:
        doc = await self.users.get(uid)
        return User.model_validate(doc) if doc else None

    async def get(self, uid: str) -> User:
        user = await self.find(uid)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def patients(self) -> List[User]:
        docs = await self.users.list_by_role(Role.PATIENT.value)
        return [User.model_validate(d) for d in docs]

    async def diet_info(self, uid: str) -> Optional[Dict[str, Any]]:
        user = await self.find(uid)
        return user.diet_info if user else None
