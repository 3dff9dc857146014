from datetime import datetime, timezone
from typing import Callable
from uuid import UUID, uuid4

import pytest

from app.models.post import Post
from app.models.user import User


class FakePostRepository:
    """In-memory stand-in for PostRepository."""

    def __init__(self, posts: list[Post] | None = None) -> None:
        self._store: dict[UUID, Post] = {post.id: post for post in posts or []}
        self.keyword_calls: list[list[str]] = []
        self.get_by_ids_calls = 0

    def add(self, post: Post) -> Post:
        self._store[post.id] = post
        return post

    async def get_by_ids(self, ids) -> list[Post]:
        self.get_by_ids_calls += 1
        return [self._store[i] for i in ids if i in self._store]

    async def search_by_keywords(self, terms, *, limit: int) -> list[Post]:
        self.keyword_calls.append(list(terms))
        matches = [
            post
            for post in self._store.values()
            if any(term.lower() in post.content.lower() for term in terms)
        ]
        matches.sort(key=lambda p: (p.likes_count, p.created_at), reverse=True)
        return matches[:limit]

    async def list_for_indexing(self) -> list[tuple[UUID, str]]:
        return [(post.id, post.content) for post in self._store.values()]


@pytest.fixture
def make_post() -> Callable[..., Post]:
    """Build a transient Post with its owner attached."""

    def _make(content: str, *, likes: int = 0, owner_name: str = "Jane", owner_id: int = 1) -> Post:
        now = datetime.now(timezone.utc)
        owner = User(
            id=owner_id,
            email=f"user{owner_id}@example.com",
            name=owner_name,
            profile_image="",
        )
        post = Post(
            id=uuid4(),
            content=content,
            image="",
            owner_id=owner_id,
            likes_count=likes,
            comments_count=0,
            created_at=now,
            updated_at=now,
        )
        post.owner = owner
        return post

    return _make


@pytest.fixture
def post_repository() -> FakePostRepository:
    return FakePostRepository()
