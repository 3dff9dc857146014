"""
VectorStore Abstraction
Interface and implementations for post similarity search
"""

from app.vectorstore.protocol import VectorStoreProtocol, SimilarityCandidate
from app.vectorstore.factory import get_vectorstore, get_post_vectorstore

__all__ = [
    "VectorStoreProtocol",
    "SimilarityCandidate",
    "get_vectorstore",
    "get_post_vectorstore",
]
