"""Pytest configuration and fixtures."""

import os
import random
import sys
from pathlib import Path

import pytest

# Add src to Python path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

# Set test environment
os.environ["MEMEBASE_APP_ENV"] = "test"
os.environ["MEMEBASE_STORE_BACKEND"] = "memory"

from memebase.models.meme import MemeRecord  # noqa: E402
from memebase.repositories.meme_repository import MemeRepository  # noqa: E402
from memebase.store.memory import InMemoryMemeStore  # noqa: E402


@pytest.fixture
def memory_store() -> InMemoryMemeStore:
    """Empty in-memory store with a seeded random source."""
    return InMemoryMemeStore(rng=random.Random(7))


@pytest.fixture
def repository(memory_store: InMemoryMemeStore) -> MemeRepository:
    """Repository over the in-memory store."""
    return MemeRepository(memory_store)


@pytest.fixture
def sample_meme() -> MemeRecord:
    """A valid, not yet created meme."""
    return MemeRecord(artist="Rick Astley", title="Never Gonna Give You Up", b64="aGVsbG8gd29ybGQ=")


@pytest.fixture
async def twelve_memes(repository: MemeRepository) -> list:
    """Twelve records by one artist with shuffled titles, two of them duplicated."""
    titles = [
        "kappa", "alpha", "lambda", "delta", "alpha", "iota",
        "beta", "theta", "eta", "gamma", "epsilon", "beta",
    ]
    created = []
    for title in titles:
        created.append(await repository.create(MemeRecord(artist="band", title=title, b64="Zm9v")))
    return created
