"""
Custom Exceptions for the post search backend
"""


class PostSearchException(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


# Database Exceptions
class RecordNotFoundError(PostSearchException):
    """Requested record not found in database"""

    pass


# Embedding Exceptions
class EmbeddingError(PostSearchException):
    """Embedding generation failed"""

    pass


class EmptyInputError(EmbeddingError):
    """Text was empty after normalization"""

    pass


class DimensionMismatchError(EmbeddingError):
    """Embedding length differs from the configured vector dimension"""

    pass


class EmbeddingModelLoadError(EmbeddingError):
    """Embedding model could not be loaded"""

    pass


# VectorStore Exceptions
class VectorStoreError(PostSearchException):
    """VectorStore operation failed"""

    pass


class VectorIndexError(VectorStoreError):
    """Failed to index vector"""

    pass


class VectorSearchError(VectorStoreError):
    """Failed to search vectors"""

    pass


class VectorStoreUnavailableError(VectorStoreError):
    """Vector schema could not be initialized; search is disabled"""

    pass


# LLM Exceptions
class LLMError(PostSearchException):
    """LLM operation failed"""

    pass


class LLMUnavailableError(LLMError):
    """No LLM credential configured"""

    pass


class LLMTimeoutError(LLMError):
    """LLM call exceeded its time budget"""

    pass


class LLMProviderError(LLMError):
    """LLM provider returned a non-success response"""

    pass


# Search Exceptions
class SearchFailedError(PostSearchException):
    """Query path failed for an internal reason"""

    def __init__(self, message: str = "Search failed", code: str | None = None):
        super().__init__(message, code)


class RateLimitExceededError(PostSearchException):
    """Per-user request budget exhausted for the current window"""

    pass


class ServiceUnavailableError(PostSearchException):
    """Required search dependency is not configured"""

    pass


# Validation Exceptions
class ValidationError(PostSearchException):
    """Input validation failed"""

    pass


class AuthenticationError(PostSearchException):
    """Authentication failed"""

    pass


class AuthorizationError(PostSearchException):
    """User not authorized for this operation"""

    pass


class JWTDecodeError(AuthenticationError):
    """JWT decoding failed"""

    pass
