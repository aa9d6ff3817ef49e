"""Document store backends."""

from .base import Document, MemeStore
from .factory import StoreBackend, create_store
from .memory import InMemoryMemeStore
from .mongo import MongoMemeStore
from .sql import SqlMemeStore

__all__ = [
    "Document",
    "MemeStore",
    "StoreBackend",
    "create_store",
    "InMemoryMemeStore",
    "MongoMemeStore",
    "SqlMemeStore",
]
