"""
Post service

Create / update / delete for posts. Each successful write schedules a
best-effort index update; the write itself never waits on embedding.
"""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError
from app.core.logging import get_logger
from app.models.post import Post
from app.repositories.post_repository import PostRepository
from app.schemas.post import PostCreate, PostResponse, PostUpdate
from app.services.indexing_service import PostIndexer

logger = get_logger(__name__)


class PostService:
    """Post write use cases."""

    def __init__(
        self,
        session: AsyncSession,
        indexer: PostIndexer,
        repository: PostRepository | None = None,
    ):
        self.session = session
        self.indexer = indexer
        self.repository = repository or PostRepository(session)

    async def create_post(self, owner_id: int, data: PostCreate) -> PostResponse:
        post = Post(owner_id=owner_id, content=data.content.strip(), image=data.image)
        post = await self.repository.create(post)
        logger.info("post_created", post_id=str(post.id), owner_id=owner_id)

        self.indexer.schedule_index(post.id, post.content)
        return PostResponse.model_validate(post)

    async def update_post(self, post_id: UUID, owner_id: int, data: PostUpdate) -> PostResponse:
        """
        Update a post owned by owner_id.

        Re-indexes only when the content actually changed.

        Raises:
            RecordNotFoundError: Post does not exist
            AuthorizationError: Post belongs to another user
        """
        post = await self._get_owned(post_id, owner_id)

        content_changed = False
        if data.content is not None:
            content = data.content.strip()
            content_changed = content != post.content
            post.content = content
        if data.image is not None:
            post.image = data.image

        post = await self.repository.update(post)
        logger.info("post_updated", post_id=str(post.id), content_changed=content_changed)

        if content_changed:
            self.indexer.schedule_index(post.id, post.content)
        return PostResponse.model_validate(post)

    async def delete_post(self, post_id: UUID, owner_id: int) -> None:
        post = await self._get_owned(post_id, owner_id)
        await self.repository.delete(post)
        logger.info("post_deleted", post_id=str(post_id))

        self.indexer.schedule_remove(post_id)

    async def _get_owned(self, post_id: UUID, owner_id: int) -> Post:
        post = await self.repository.get_by_id_or_raise(post_id)
        if post.owner_id != owner_id:
            raise AuthorizationError("Not allowed to modify this post")
        return post
