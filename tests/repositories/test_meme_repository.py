"""Tests for the meme repository against the in-memory store."""

import asyncio
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from memebase.exceptions.base import ValidationFailedError
from memebase.exceptions.database import (
    DocumentNotFoundError,
    EditConflictError,
    StoreError,
    StoreTimeoutError,
)
from memebase.models.filters import FilterCriteria, PageSpec, SortDirection, SortField, SortSpec
from memebase.models.meme import MemePatch, MemeRecord
from memebase.repositories.meme_repository import MemeRepository
from memebase.store.memory import InMemoryMemeStore

MISSING_ID = "65f0c0ffee0000000000abcd"


class SlowStore(InMemoryMemeStore):
    """Store whose reads never finish within the budget."""

    async def find_one(self, id):
        await asyncio.sleep(1)
        return await super().find_one(id)


class BrokenStore(InMemoryMemeStore):
    """Store whose counting always fails."""

    async def count(self, criteria):
        raise StoreError("connection reset")


@pytest.mark.asyncio
async def test_create(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that create assigns id, created and version 1."""
    meme = await repository.create(sample_meme)

    assert meme.id
    assert meme.version == 1
    assert abs(meme.created - datetime.now(timezone.utc)) < timedelta(seconds=2)
    assert (meme.artist, meme.title, meme.b64) == (sample_meme.artist, sample_meme.title, sample_meme.b64)


@pytest.mark.asyncio
async def test_create_ignores_caller_identity(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that a caller cannot choose id or version."""
    meme = await repository.create(sample_meme.model_copy(update={"id": MISSING_ID, "version": 9}))

    assert meme.id != MISSING_ID
    assert meme.version == 1


@pytest.mark.asyncio
async def test_create_invalid_never_reaches_store(repository: MemeRepository, memory_store: InMemoryMemeStore):
    """Test that validation fails before any write."""
    with pytest.raises(ValidationFailedError) as exc_info:
        await repository.create(MemeRecord(artist="a" * 65))

    assert set(exc_info.value.field_errors) == {"artist", "title", "b64"}
    assert len(memory_store) == 0


@pytest.mark.asyncio
async def test_get_round_trip(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that a created record reads back identically."""
    created = await repository.create(sample_meme)

    assert await repository.get(created.id) == created


@pytest.mark.asyncio
@pytest.mark.parametrize("id", ["", "nope", "65f0c0ffee", MISSING_ID])
async def test_get_missing(repository: MemeRepository, id: str):
    """Test that malformed and unknown ids are not found."""
    with pytest.raises(DocumentNotFoundError):
        await repository.get(id)


@pytest.mark.asyncio
async def test_update_increments_version(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that an update with the current version succeeds."""
    created = await repository.create(sample_meme)

    updated = await repository.update(created.model_copy(update={"title": "Changed"}))

    assert updated.version == 2
    stored = await repository.get(created.id)
    assert stored.title == "Changed"
    assert stored.version == 2
    assert stored.created == created.created
    assert stored.artist == created.artist


@pytest.mark.asyncio
async def test_update_stale_version_conflicts(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that a stale version fails and leaves the record untouched."""
    created = await repository.create(sample_meme)
    await repository.update(created.model_copy(update={"title": "First"}))

    with pytest.raises(EditConflictError):
        await repository.update(created.model_copy(update={"title": "Second"}))

    stored = await repository.get(created.id)
    assert stored.title == "First"
    assert stored.version == 2


@pytest.mark.asyncio
async def test_update_future_version_conflicts(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that versions cannot be skipped."""
    created = await repository.create(sample_meme)

    with pytest.raises(EditConflictError):
        await repository.update(created.model_copy(update={"version": 5}))

    assert (await repository.get(created.id)).version == 1


@pytest.mark.asyncio
async def test_concurrent_updates_single_winner(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that only one of several writers from the same version succeeds."""
    created = await repository.create(sample_meme)
    edits = [created.model_copy(update={"title": f"writer {n}"}) for n in range(5)]

    results = await asyncio.gather(*(repository.update(edit) for edit in edits), return_exceptions=True)

    winners = [result for result in results if isinstance(result, MemeRecord)]
    assert len(winners) == 1
    assert all(isinstance(result, EditConflictError) for result in results if result not in winners)
    stored = await repository.get(created.id)
    assert stored.version == 2
    assert stored.title == winners[0].title


@pytest.mark.asyncio
async def test_update_deleted_record_conflicts(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that updating a record deleted after it was read is a conflict."""
    created = await repository.create(sample_meme)
    await repository.delete(created.id)

    with pytest.raises(EditConflictError):
        await repository.update(created)


@pytest.mark.asyncio
async def test_update_invalid(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that an update is re-validated."""
    created = await repository.create(sample_meme)

    with pytest.raises(ValidationFailedError):
        await repository.update(created.model_copy(update={"b64": ""}))

    with pytest.raises(DocumentNotFoundError):
        await repository.update(created.model_copy(update={"id": "bogus"}))


@pytest.mark.asyncio
async def test_patch_merges_supplied_fields(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that omitted fields keep their stored values."""
    created = await repository.create(sample_meme)

    updated = await repository.patch(created.id, MemePatch(b64="YmFy"))

    assert updated.version == 2
    assert updated.b64 == "YmFy"
    assert updated.artist == created.artist
    assert updated.title == created.title


@pytest.mark.asyncio
async def test_patch_expected_version(repository: MemeRepository, sample_meme: MemeRecord):
    """Test the expected-version precheck."""
    created = await repository.create(sample_meme)

    with pytest.raises(EditConflictError):
        await repository.patch(created.id, MemePatch(title="x"), expected_version=2)

    updated = await repository.patch(created.id, MemePatch(title="x"), expected_version=1)
    assert updated.version == 2


@pytest.mark.asyncio
async def test_patch_explicit_empty_fails_validation(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that clearing a required field is rejected rather than ignored."""
    created = await repository.create(sample_meme)

    with pytest.raises(ValidationFailedError) as exc_info:
        await repository.patch(created.id, MemePatch(title=""))

    assert exc_info.value.field_errors == {"title": "must be provided"}
    assert (await repository.get(created.id)).version == 1


@pytest.mark.asyncio
async def test_delete(repository: MemeRepository, sample_meme: MemeRecord):
    """Test that a deleted record is gone."""
    created = await repository.create(sample_meme)

    await repository.delete(created.id)

    with pytest.raises(DocumentNotFoundError):
        await repository.get(created.id)
    with pytest.raises(DocumentNotFoundError):
        await repository.delete(created.id)


@pytest.mark.asyncio
@pytest.mark.parametrize("id", ["garbage", MISSING_ID])
async def test_delete_missing(repository: MemeRepository, id: str):
    """Test that deleting an unknown id is not found."""
    with pytest.raises(DocumentNotFoundError):
        await repository.delete(id)


@pytest.mark.asyncio
async def test_list_first_page_by_title(repository: MemeRepository, twelve_memes: list):
    """Test the first page of twelve records sorted by title."""
    memes, metadata = await repository.list(
        FilterCriteria(), SortSpec(SortField.TITLE), PageSpec(page=1, page_size=5)
    )

    expected = sorted(twelve_memes, key=lambda meme: (meme.title, meme.id))[:5]
    assert [meme.id for meme in memes] == [meme.id for meme in expected]
    assert [meme.title for meme in memes] == ["alpha", "alpha", "beta", "beta", "delta"]
    assert metadata.to_dict() == {
        "current_page": 1,
        "page_size": 5,
        "first_page": 1,
        "last_page": 3,
        "total_records": 12,
    }


@pytest.mark.asyncio
async def test_list_pages_cover_everything_once(repository: MemeRepository, twelve_memes: list):
    """Test that consecutive pages neither skip nor repeat records."""
    seen = []
    for page in (1, 2, 3):
        memes, metadata = await repository.list(
            FilterCriteria(), SortSpec(SortField.TITLE, SortDirection.DESCENDING), PageSpec(page, 5)
        )
        assert metadata.current_page == page
        seen.extend(meme.id for meme in memes)

    assert len(seen) == 12
    assert set(seen) == {meme.id for meme in twelve_memes}


@pytest.mark.asyncio
async def test_list_past_last_page(repository: MemeRepository, twelve_memes: list):
    """Test that a page beyond the data is empty with empty metadata."""
    memes, metadata = await repository.list(FilterCriteria(), SortSpec(SortField.TITLE), PageSpec(4, 5))

    assert memes == []
    assert metadata.is_empty


@pytest.mark.asyncio
async def test_list_title_substring_case_insensitive(repository: MemeRepository):
    """Test that title filtering is a case-insensitive substring match."""
    match = await repository.create(MemeRecord(artist="a", title="xFooBar", b64="Zm9v"))
    await repository.create(MemeRecord(artist="a", title="bar", b64="Zm9v"))

    memes, metadata = await repository.list(
        FilterCriteria(title="foo"), SortSpec(SortField.CREATED), PageSpec()
    )

    assert [meme.id for meme in memes] == [match.id]
    assert metadata.total_records == 1


@pytest.mark.asyncio
async def test_list_artist_exact(repository: MemeRepository):
    """Test that artist filtering is exact."""
    match = await repository.create(MemeRecord(artist="Band", title="one", b64="Zm9v"))
    await repository.create(MemeRecord(artist="Band Two", title="two", b64="Zm9v"))
    await repository.create(MemeRecord(artist="band", title="three", b64="Zm9v"))

    memes, _ = await repository.list(FilterCriteria(artist="Band"), SortSpec(SortField.TITLE), PageSpec())

    assert [meme.id for meme in memes] == [match.id]


@pytest.mark.asyncio
async def test_list_created_descending(memory_store: InMemoryMemeStore):
    """Test ordering by creation time, newest first."""
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    ticks = count()
    repository = MemeRepository(memory_store, clock=lambda: start + timedelta(minutes=next(ticks)))
    created = [await repository.create(MemeRecord(artist="a", title=f"t{n}", b64="Zm9v")) for n in range(4)]

    memes, _ = await repository.list(
        FilterCriteria(), SortSpec(SortField.CREATED, SortDirection.DESCENDING), PageSpec(1, 10)
    )

    assert [meme.id for meme in memes] == [meme.id for meme in reversed(created)]


@pytest.mark.asyncio
async def test_list_store_failure_propagates():
    """Test that store failures surface as StoreError with no partial result."""
    repository = MemeRepository(BrokenStore())

    with pytest.raises(StoreError):
        await repository.list(FilterCriteria(), SortSpec(SortField.TITLE), PageSpec())


@pytest.mark.asyncio
async def test_random_empty_collection(repository: MemeRepository):
    """Test that sampling an empty collection is not found."""
    with pytest.raises(DocumentNotFoundError):
        await repository.get_random()


@pytest.mark.asyncio
async def test_random_returns_stored_record(repository: MemeRepository, twelve_memes: list):
    """Test that sampling returns one of the stored records."""
    meme = await repository.get_random()

    assert meme in twelve_memes


@pytest.mark.asyncio
async def test_store_call_timeout(sample_meme: MemeRecord):
    """Test that a store call exceeding its budget fails with a timeout."""
    store = SlowStore()
    repository = MemeRepository(store, document_timeout=0.01)
    created = await repository.create(sample_meme)

    with pytest.raises(StoreTimeoutError) as exc_info:
        await repository.get(created.id)

    assert isinstance(exc_info.value, StoreError)
    assert exc_info.value.details["operation"] == "find_one"
