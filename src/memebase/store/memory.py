"""In-process store used for tests and the ``memory`` backend."""

import copy
import random
from typing import Any, Dict, List, Optional

from ..models.filters import FilterCriteria, SortDirection
from ..models.meme import new_id
from ..query.pipeline import QueryPipeline
from .base import Document, MemeStore


def matches(criteria: FilterCriteria, document: Document) -> bool:
    """Evaluate filter criteria against a single document."""
    if criteria.artist is not None and document.get("artist") != criteria.artist:
        return False
    if criteria.title is not None:
        return criteria.title.casefold() in document.get("title", "").casefold()
    return True


class InMemoryMemeStore(MemeStore):
    """Dictionary-backed store; every call returns copies."""

    name = "memory"

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._documents: Dict[str, Document] = {}
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._documents)

    async def insert_one(self, document: Document) -> str:
        id = new_id()
        stored = copy.deepcopy(document)
        stored["_id"] = id
        self._documents[id] = stored
        return id

    async def find_one(self, id: str) -> Optional[Document]:
        document = self._documents.get(id)
        return copy.deepcopy(document) if document is not None else None

    async def count(self, criteria: FilterCriteria) -> int:
        return sum(1 for document in self._documents.values() if matches(criteria, document))

    async def aggregate(self, pipeline: QueryPipeline) -> List[Document]:
        documents = [d for d in self._documents.values() if matches(pipeline.match.criteria, d)]

        # Stable sorts applied from the least significant key.
        for field, direction in reversed(pipeline.sort.keys):
            documents.sort(
                key=lambda d, f=field: d.get(f),
                reverse=direction == SortDirection.DESCENDING,
            )

        start = pipeline.skip.count
        documents = documents[start:start + pipeline.limit.count]
        return [copy.deepcopy(d) for d in documents]

    async def update_one(self, id: str, version: int, fields: Dict[str, Any]) -> int:
        document = self._documents.get(id)
        if document is None or document.get("version") != version:
            return 0
        document.update(copy.deepcopy(fields))
        document["version"] = version + 1
        return 1

    async def delete_one(self, id: str) -> int:
        return 1 if self._documents.pop(id, None) is not None else 0

    async def sample_one(self) -> List[Document]:
        if not self._documents:
            return []
        return [copy.deepcopy(self._rng.choice(list(self._documents.values())))]
