"""Store factory for the configured backend."""
from enum import Enum

from ..config.config import Settings
from ..utils.logging import get_logger
from .base import MemeStore
from .memory import InMemoryMemeStore
from .mongo import MongoMemeStore
from .sql import SqlMemeStore

logger = get_logger(__name__)


class StoreBackend(str, Enum):
    """Supported store backends."""
    MONGO = "mongo"
    SQL = "sql"
    MEMORY = "memory"


async def create_store(settings: Settings) -> MemeStore:
    """Create and connect the store named by ``settings.store_backend``.

    Args:
        settings: Application settings

    Returns:
        MemeStore: Connected store

    Raises:
        StoreError: If the backend cannot be reached
    """
    backend = StoreBackend(settings.store_backend)

    if backend is StoreBackend.MONGO:
        store: MemeStore = await MongoMemeStore.connect(
            settings.mongo_uri,
            settings.mongo_database,
            settings.mongo_collection,
            username=settings.mongo_user,
            password=settings.mongo_password,
            timeout=settings.connect_timeout,
        )
    elif backend is StoreBackend.SQL:
        store = await SqlMemeStore.connect(settings.database_url)
    else:
        store = InMemoryMemeStore()

    logger.info("store_connected", backend=backend.value)
    return store
