"""Storage for content, profiles, interactions and run metrics."""

from .sql_store import SqlDocumentStore  # noqa: F401
from .store import DocumentStore, InMemoryDocumentStore  # noqa: F401

__all__ = ["DocumentStore", "InMemoryDocumentStore", "SqlDocumentStore"]
