"""MongoDB store backed by the pymongo async client."""

import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from bson import ObjectId
from bson.son import SON
from pymongo import AsyncMongoClient
from pymongo.errors import ConnectionFailure, PyMongoError

from ..exceptions.database import StoreConnectionError, StoreError, StoreTimeoutError
from ..models.filters import FilterCriteria
from ..query.pipeline import QueryPipeline
from ..utils.logging import get_logger
from .base import Document, MemeStore

logger = get_logger(__name__)


def mongo_predicate(criteria: FilterCriteria) -> Dict[str, Any]:
    """Render filter criteria as a ``$match`` document."""
    predicate: Dict[str, Any] = {}
    if criteria.artist is not None:
        predicate["artist"] = criteria.artist
    if criteria.title is not None:
        predicate["title"] = {"$regex": re.escape(criteria.title), "$options": "i"}
    return predicate


def mongo_pipeline(pipeline: QueryPipeline) -> List[Dict[str, Any]]:
    """Render a listing pipeline as aggregation stages, preserving stage order."""
    return [
        {"$match": mongo_predicate(pipeline.match.criteria)},
        {"$sort": SON(pipeline.sort.keys)},
        {"$skip": pipeline.skip.count},
        {"$limit": pipeline.limit.count},
    ]


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Wrap pymongo failures in the store error hierarchy."""
    try:
        yield
    except PyMongoError as e:
        logger.warning("store_operation_failed", backend="mongo", operation=operation, error=str(e))
        if e.timeout:
            raise StoreTimeoutError(operation, original_error=e) from e
        if isinstance(e, ConnectionFailure):
            raise StoreConnectionError(f"cannot reach store during {operation!r}", original_error=e) from e
        raise StoreError(f"store operation {operation!r} failed", original_error=e) from e


def _from_mongo(raw: Dict[str, Any]) -> Document:
    document = dict(raw)
    document["_id"] = str(document["_id"])
    return document


class MongoMemeStore(MemeStore):
    """Store for the ``memes`` collection."""

    name = "mongo"

    def __init__(self, collection: Any, client: Optional[AsyncMongoClient] = None) -> None:
        """
        Initialize the store.

        Args:
            collection: Async collection handle
            client: Owning client, closed by ``close()`` when given
        """
        self._collection = collection
        self._client = client

    @classmethod
    async def connect(
        cls,
        uri: str,
        database: str = "memebase",
        collection: str = "memes",
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
    ) -> "MongoMemeStore":
        """
        Connect to MongoDB and verify the primary is reachable.

        Raises:
            StoreError: If the server cannot be reached within ``timeout``
        """
        options: Dict[str, Any] = {
            "tz_aware": True,
            "serverSelectionTimeoutMS": int(timeout * 1000),
        }
        if username:
            options["username"] = username
            options["password"] = password

        client: AsyncMongoClient = AsyncMongoClient(uri, **options)
        store = cls(client[database][collection], client=client)
        try:
            await store.ping()
        except StoreError:
            await client.close()
            raise
        return store

    async def ping(self) -> None:
        with translate_errors("ping"):
            await self._collection.database.command("ping")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()

    async def insert_one(self, document: Document) -> str:
        with translate_errors("insert_one"):
            result = await self._collection.insert_one(dict(document))

        inserted_id = result.inserted_id
        if not isinstance(inserted_id, ObjectId):
            raise StoreError(f"insert returned unexpected identifier {inserted_id!r}")
        return str(inserted_id)

    async def find_one(self, id: str) -> Optional[Document]:
        with translate_errors("find_one"):
            raw = await self._collection.find_one({"_id": ObjectId(id)})
        return _from_mongo(raw) if raw is not None else None

    async def count(self, criteria: FilterCriteria) -> int:
        with translate_errors("count"):
            return await self._collection.count_documents(mongo_predicate(criteria))

    async def aggregate(self, pipeline: QueryPipeline) -> List[Document]:
        with translate_errors("aggregate"):
            cursor = await self._collection.aggregate(mongo_pipeline(pipeline))
            raw = await cursor.to_list()
        return [_from_mongo(doc) for doc in raw]

    async def update_one(self, id: str, version: int, fields: Dict[str, Any]) -> int:
        update = {"$set": {**fields, "version": version + 1}}
        with translate_errors("update_one"):
            result = await self._collection.update_one({"_id": ObjectId(id), "version": version}, update)
        return result.matched_count

    async def delete_one(self, id: str) -> int:
        with translate_errors("delete_one"):
            result = await self._collection.delete_one({"_id": ObjectId(id)})
        return result.deleted_count

    async def sample_one(self) -> List[Document]:
        with translate_errors("sample_one"):
            cursor = await self._collection.aggregate([{"$sample": {"size": 1}}])
            raw = await cursor.to_list()
        return [_from_mongo(doc) for doc in raw]
