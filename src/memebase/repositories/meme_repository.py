"""Repository for meme records.

Every write is a single document operation. Updates are guarded by the
record's ``version``: the store only applies the write when the stored
version still equals the caller's, so concurrent writers cannot overwrite
each other and no locking is needed.

Listing issues a count and a page fetch as two separate store calls. Under
concurrent writes ``total_records`` and the returned page may disagree.
"""

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar

from ..exceptions.base import ValidationFailedError
from ..exceptions.database import DocumentNotFoundError, EditConflictError, StoreTimeoutError
from ..models.filters import FilterCriteria, PageSpec, SortSpec
from ..models.meme import MemePatch, MemeRecord, normalize_id, validate_meme
from ..models.metadata import PaginationMetadata, calculate_metadata
from ..query.pipeline import build_list_pipeline
from ..store.base import MemeStore
from ..utils.logging import get_logger, log_performance

logger = get_logger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    """Current UTC time at millisecond precision, the store's resolution."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class MemeRepository:
    """Data access for meme records."""

    def __init__(
        self,
        store: MemeStore,
        *,
        document_timeout: float = 3.0,
        aggregate_timeout: float = 6.0,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the MemeRepository.

        Args:
            store: Backend store
            document_timeout: Budget in seconds for single-document calls
            aggregate_timeout: Budget in seconds for counting, listing and sampling
            clock: Source of creation timestamps
        """
        self.store = store
        self.document_timeout = document_timeout
        self.aggregate_timeout = aggregate_timeout
        self._clock = clock

    async def _call(self, operation: str, awaitable: Awaitable[T], timeout: float) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            logger.error("store_timeout", operation=operation, timeout=timeout)
            raise StoreTimeoutError(operation, timeout) from e

    @staticmethod
    def _parse_id(id: str) -> str:
        object_id = normalize_id(id)
        if object_id is None:
            raise DocumentNotFoundError(id)
        return object_id

    @log_performance
    async def create(self, meme: MemeRecord) -> MemeRecord:
        """
        Create a new meme.

        Args:
            meme: Record carrying artist, title and b64; other fields are ignored

        Returns:
            MemeRecord: The stored record with id, created and version 1

        Raises:
            ValidationFailedError: If any field violates its constraints
            StoreError: If the write fails
        """
        errors = validate_meme(meme)
        if errors:
            raise ValidationFailedError(errors)

        record = meme.model_copy(update={"id": "", "created": self._clock(), "version": 1})
        id = await self._call(
            "insert_one", self.store.insert_one(record.to_document()), self.document_timeout
        )

        logger.info("meme_created", meme_id=id)
        return record.model_copy(update={"id": id})

    @log_performance
    async def get(self, id: str) -> MemeRecord:
        """
        Get a meme by ID.

        Raises:
            DocumentNotFoundError: If the ID is malformed or unknown
            StoreError: If the read fails
        """
        object_id = self._parse_id(id)
        document = await self._call("find_one", self.store.find_one(object_id), self.document_timeout)
        if document is None:
            raise DocumentNotFoundError(id)
        return MemeRecord.from_document(document)

    @log_performance
    async def update(self, meme: MemeRecord) -> MemeRecord:
        """
        Write ``meme`` if the stored version still equals ``meme.version``.

        Args:
            meme: Full record as last read by the caller, with edits applied

        Returns:
            MemeRecord: The record with its version incremented by one

        Raises:
            DocumentNotFoundError: If the ID is malformed
            ValidationFailedError: If any field violates its constraints
            EditConflictError: If the record changed or vanished since it was read
            StoreError: If the write fails
        """
        object_id = self._parse_id(meme.id)

        errors = validate_meme(meme)
        if errors:
            raise ValidationFailedError(errors)

        matched = await self._call(
            "update_one",
            self.store.update_one(object_id, meme.version, meme.mutable_fields()),
            self.document_timeout,
        )
        if matched == 0:
            logger.info("edit_conflict", meme_id=object_id, expected_version=meme.version)
            raise EditConflictError(object_id, meme.version)

        logger.info("meme_updated", meme_id=object_id, version=meme.version + 1)
        return meme.model_copy(update={"id": object_id, "version": meme.version + 1})

    async def patch(
        self,
        id: str,
        patch: MemePatch,
        expected_version: Optional[int] = None,
    ) -> MemeRecord:
        """
        Merge supplied fields into the stored record and write it back.

        Args:
            id: Record identifier
            patch: Fields to change; omitted fields keep their stored value
            expected_version: If given, fail fast unless the stored version matches

        Raises:
            DocumentNotFoundError: If the record does not exist
            EditConflictError: On a version mismatch, here or at write time
            ValidationFailedError: If the merged record is invalid
        """
        current = await self.get(id)
        if expected_version is not None and expected_version != current.version:
            logger.info("edit_conflict", meme_id=current.id, expected_version=expected_version)
            raise EditConflictError(current.id, expected_version)
        return await self.update(patch.apply(current))

    @log_performance
    async def delete(self, id: str) -> None:
        """
        Permanently delete a meme.

        Raises:
            DocumentNotFoundError: If the ID is malformed or nothing was removed
            StoreError: If the delete fails
        """
        object_id = self._parse_id(id)
        deleted = await self._call("delete_one", self.store.delete_one(object_id), self.document_timeout)
        if deleted == 0:
            raise DocumentNotFoundError(id)
        logger.info("meme_deleted", meme_id=object_id)

    @log_performance
    async def list(
        self,
        criteria: FilterCriteria,
        sort: SortSpec,
        page: PageSpec,
    ) -> Tuple[List[MemeRecord], PaginationMetadata]:
        """
        List one page of memes matching ``criteria``.

        Args:
            criteria: Filter predicate
            sort: Validated sort key
            page: Validated page request

        Returns:
            The page of records and its pagination metadata

        Raises:
            StoreError: If either the count or the fetch fails
        """
        total = await self._call("count", self.store.count(criteria), self.aggregate_timeout)

        pipeline = build_list_pipeline(criteria, sort, page)
        documents = await self._call("aggregate", self.store.aggregate(pipeline), self.aggregate_timeout)

        memes = [MemeRecord.from_document(document) for document in documents]
        return memes, calculate_metadata(len(memes), total, page.page, page.page_size)

    @log_performance
    async def get_random(self) -> MemeRecord:
        """
        Get one meme chosen at random from the whole collection.

        Raises:
            DocumentNotFoundError: If the collection is empty
            StoreError: If the sample query fails
        """
        documents = await self._call("sample_one", self.store.sample_one(), self.aggregate_timeout)
        if not documents:
            raise DocumentNotFoundError()
        return MemeRecord.from_document(documents[0])
