"""Base store interface."""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.filters import FilterCriteria
from ..query.pipeline import QueryPipeline

Document = Dict[str, Any]


class MemeStore(ABC):
    """Narrow document-store interface used by the repository.

    Documents cross this boundary in store-facing shape
    ``{_id, created, artist, title, b64, version}`` with ``_id`` as a
    24 character hex string. Implementations wrap backend failures in
    ``StoreError``.
    """

    name: str = "store"

    @abstractmethod
    async def insert_one(self, document: Document) -> str:
        """Insert a document.

        Args:
            document: Document without ``_id``

        Returns:
            str: The generated identifier
        """

    @abstractmethod
    async def find_one(self, id: str) -> Optional[Document]:
        """Fetch a document by identifier, or None."""

    @abstractmethod
    async def count(self, criteria: FilterCriteria) -> int:
        """Count documents matching the criteria."""

    @abstractmethod
    async def aggregate(self, pipeline: QueryPipeline) -> List[Document]:
        """Run a listing pipeline and return the page of documents."""

    @abstractmethod
    async def update_one(self, id: str, version: int, fields: Dict[str, Any]) -> int:
        """Conditionally update a document.

        Matches on ``(_id == id, version == version)``, sets ``fields`` and
        ``version = version + 1`` in a single write.

        Returns:
            int: Number of documents matched (0 or 1)
        """

    @abstractmethod
    async def delete_one(self, id: str) -> int:
        """Delete a document; returns the number removed (0 or 1)."""

    @abstractmethod
    async def sample_one(self) -> List[Document]:
        """Return one randomly chosen document, or an empty list."""

    async def ping(self) -> None:
        """Check connectivity; raise ``StoreConnectionError`` on failure."""

    async def close(self) -> None:
        """Release backend resources."""
