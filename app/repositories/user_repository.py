"""
User repository
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User


class UserRepository:
    """Read access to accounts for authentication."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> User | None:
        """Look up a user by primary key."""

        stmt = select(User).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_user(self, *, email: str, name: str = "", profile_image: str = "") -> User:
        user = User(email=email, name=name, profile_image=profile_image)
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user
