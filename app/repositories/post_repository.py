"""
Post repository

Primary-store queries used by the search pipeline: hydration of vector
candidates, keyword fallback, and the full scan used by bulk reindex.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.post import Post
from app.repositories.base import BaseRepository


class PostRepository(BaseRepository[Post]):
    """Post persistence on top of the generic repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(Post, session)

    async def get_by_ids(self, ids: Sequence[UUID]) -> list[Post]:
        """Load posts (with owners) for the given ids. Unknown ids are skipped."""

        if not ids:
            return []

        stmt = select(Post).where(Post.id.in_(list(ids)))
        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def search_by_keywords(self, terms: Sequence[str], *, limit: int) -> list[Post]:
        """
        Case-insensitive substring match on any term.

        Ordered by popularity then recency.
        """

        if not terms:
            return []

        conditions = [Post.content.ilike(f"%{_escape_like(term)}%", escape="\\") for term in terms]
        stmt = (
            select(Post)
            .where(or_(*conditions))
            .order_by(Post.likes_count.desc(), Post.created_at.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.unique().scalars().all())

    async def list_for_indexing(self) -> list[tuple[UUID, str]]:
        """(id, content) for every post, oldest first."""

        stmt = select(Post.id, Post.content).order_by(Post.created_at.asc())
        result = await self.session.execute(stmt)
        return [(row.id, row.content) for row in result.all()]


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
