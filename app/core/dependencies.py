"""
Common FastAPI dependencies
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, JWTDecodeError
from app.core.jwt import decode_access_token
from app.core.db import get_session
from app.llm.embedder import get_embedding_service
from app.models.user import User
from app.repositories.user_repository import UserRepository
from app.services.indexing_service import PostIndexer
from app.services.rate_limit import InMemoryRateLimiter, RateLimiterProtocol
from app.vectorstore.factory import get_post_vectorstore


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the authenticated user from the bearer token.

    Tokens are issued elsewhere; this service only decodes them.
    """

    try:
        payload = decode_access_token(token)
    except (JWTDecodeError, AuthenticationError):
        raise _unauthorized("Could not validate credentials")

    user_id = payload.get("sub")
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    try:
        user_id_int = int(user_id)
    except (TypeError, ValueError):
        raise _unauthorized("Invalid token subject")

    repository = UserRepository(session)
    user = await repository.get_by_id(user_id_int)
    if user is None:
        raise _unauthorized("User not found")

    return user


# Process-wide instances
_rate_limiter: RateLimiterProtocol | None = None
_post_indexer: PostIndexer | None = None


def get_rate_limiter() -> RateLimiterProtocol:
    """Search rate limiter shared by every request in this process."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = InMemoryRateLimiter()
    return _rate_limiter


def get_post_indexer() -> PostIndexer:
    """Indexer shared by post writes, reindex and shutdown draining."""
    global _post_indexer
    if _post_indexer is None:
        _post_indexer = PostIndexer(
            embedding_service=get_embedding_service(),
            vectorstore=get_post_vectorstore(),
        )
    return _post_indexer
