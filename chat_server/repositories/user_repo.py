"""
User repository for database operations.
Handles lookups by auth-provider subject, search and row locking.
"""
from typing import Optional, List, Iterable

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from chat_server.models.user import User
from chat_server.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for user database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_external_id(self, external_id: str) -> Optional[User]:
        """
        Get user by the auth provider's subject identifier.

        Args:
            external_id: Subject claim from the access token

        Returns:
            User instance or None if not found
        """
        result = await self.db.execute(
            select(User).where(User.external_id == external_id)
        )
        return result.scalar_one_or_none()

    async def search_users(
        self,
        query: str,
        exclude_user_id: Optional[str] = None,
        limit: int = 20
    ) -> List[User]:
        """
        Case-insensitive substring search on username, email and full name.

        Args:
            query: Search term
            exclude_user_id: User to leave out of the results (the caller)
            limit: Maximum number of results

        Returns:
            List of matching User instances

        Example:
            ```python
            users = await user_repo.search_users("ali", exclude_user_id=me.id)
            ```
        """
        stmt = select(User)

        if query and query.strip():
            search_term = f"%{query.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(User.username).like(search_term),
                    func.lower(User.email).like(search_term),
                    func.lower(User.full_name).like(search_term),
                )
            )

        if exclude_user_id:
            stmt = stmt.where(User.id != exclude_user_id)

        stmt = stmt.order_by(User.username).limit(limit)

        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def lock_users(self, user_ids: Iterable[str]) -> List[User]:
        """
        Take row locks on the given users in sorted id order.

        Serializes check-then-insert sequences that no unique index can
        express (DM dedup). A no-op on SQLite, which locks the whole database.
        """
        ordered = sorted(set(user_ids))
        if not ordered:
            return []

        result = await self.db.execute(
            select(User)
            .where(User.id.in_(ordered))
            .order_by(User.id)
            .with_for_update()
        )
        return list(result.scalars().all())
