"""
User service: identity resolution, profile sync and search.
"""
import logging
from typing import List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.config import settings
from chat_server.core.exceptions import NotFoundError
from chat_server.core.websocket import connection_manager
from chat_server.models.user import User, UserStatus
from chat_server.repositories.conversation_repo import ConversationMemberRepository
from chat_server.repositories.user_repo import UserRepository
from chat_server.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("full_name", "bio", "image_url")


class UserService:
    """Service for user identity and profile operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)
        self.member_repo = ConversationMemberRepository(db)
        self.ws_manager = connection_manager

    async def resolve(self, external_id: Optional[str]) -> Optional[User]:
        """
        Map an auth-provider subject to the local user.

        Returns None when there is no subject or no user row yet.
        """
        if not external_id:
            return None
        return await self.user_repo.get_by_external_id(external_id)

    async def upsert_user(
        self,
        external_id: str,
        email: str,
        username: str,
        full_name: Optional[str] = None,
        image_url: Optional[str] = None
    ) -> User:
        """
        Create or refresh the user for a subject and mark them online.

        Idempotent per external_id: repeated calls update the same row.
        """
        now = utc_now()
        user = await self.user_repo.get_by_external_id(external_id)

        if user:
            # Omitted optional fields keep their stored values
            changes = {"email": email, "username": username}
            if full_name is not None:
                changes["full_name"] = full_name
            if image_url is not None:
                changes["image_url"] = image_url

            await self.user_repo.update(user, status=UserStatus.ONLINE, last_seen_at=now, **changes)
            logger.info(f"User {user.id} signed in")
        else:
            user = await self.user_repo.create(
                external_id=external_id,
                email=email,
                username=username,
                full_name=full_name,
                image_url=image_url,
                status=UserStatus.ONLINE,
                last_seen_at=now
            )
            logger.info(f"Created user {user.id} for subject {external_id}")

        await self.db.commit()
        await self._announce_profile_change(user)
        return user

    async def update_status(self, user: User, status: UserStatus) -> User:
        await self.user_repo.update(user, status=status, last_seen_at=utc_now())
        await self.db.commit()

        logger.info(f"User {user.id} is now {status.value}")
        await self._announce_profile_change(user)
        return user

    async def update_profile(self, user: User, **fields) -> User:
        """Patch only the profile fields that were supplied."""
        changes = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}
        if changes:
            await self.user_repo.update(user, **changes)
            await self.db.commit()
            logger.info(f"User {user.id} updated profile fields {sorted(changes)}")
            await self._announce_profile_change(user)
        return user

    async def search_users(self, user: Optional[User], term: str) -> List[User]:
        """Search other users; unauthenticated callers get nothing."""
        if user is None:
            return []
        return await self.user_repo.search_users(
            term,
            exclude_user_id=user.id,
            limit=settings.user_search_limit
        )

    async def get_user(self, user_id: str) -> User:
        user = await self.user_repo.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def _co_member_ids(self, user_id: str) -> Set[str]:
        """Everyone sharing at least one conversation with the user, plus the user."""
        memberships = await self.member_repo.list_for_user(user_id)
        members = await self.member_repo.get_member_ids_map(m.conversation_id for m in memberships)
        ids = {member_id for ids in members.values() for member_id in ids}
        ids.add(user_id)
        return ids

    async def _announce_profile_change(self, user: User) -> None:
        """Conversation lists embed member profiles; tell everyone who shows this user."""
        await self.ws_manager.notify_conversations_changed(await self._co_member_ids(user.id))
