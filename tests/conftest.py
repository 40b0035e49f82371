"""
Shared test fixtures for the seeder test suite.

Provides: in-memory document store, store opener, seed file writer
Dependencies: pytest, pytest-asyncio
"""

import asyncio
import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from cosmos_seeder.errors import DocumentConflictError, VerificationError
from cosmos_seeder.schemas import StorageRecord


class FakeStore:
    """In-memory stand-in for DocumentStore keyed by (id, partitionKey)."""

    def __init__(
        self,
        failures: Optional[Dict[str, Exception]] = None,
        count_error: bool = False,
        write_delay: float = 0.0,
    ):
        self.name = "vectordb/Container3"
        self.docs: Dict[tuple, dict] = {}
        self.attempted: List[str] = []
        self.failures = dict(failures or {})
        self.count_error = count_error
        self.write_delay = write_delay
        self.in_flight = 0
        self.max_in_flight = 0

    async def create_document(self, record: StorageRecord) -> None:
        self.attempted.append(record.id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.write_delay)
            if record.id in self.failures:
                raise self.failures[record.id]
            key = (record.id, record.partitionKey)
            if key in self.docs:
                raise DocumentConflictError(record.id)
            self.docs[key] = record.model_dump()
        finally:
            self.in_flight -= 1

    async def count_documents(self) -> int:
        if self.count_error:
            raise VerificationError("count query failed")
        return len(self.docs)


def make_records(n: int, category: str = "compute") -> List[StorageRecord]:
    return [
        StorageRecord(id=f"r{i}", title=f"Title {i}", content=f"Content {i}", category=category, partitionKey=category)
        for i in range(n)
    ]


@pytest.fixture
def records_factory():
    """Provide make_records(n, category) for building StorageRecord lists."""
    return make_records


@pytest.fixture
def store_factory():
    """Provide the FakeStore class for tests that need custom failures."""
    return FakeStore


@pytest.fixture
def fake_store() -> FakeStore:
    """Provide an empty in-memory store."""
    return FakeStore()


@pytest.fixture
def store_opener(fake_store: FakeStore):
    """Provide an open_store replacement that yields fake_store and records its use."""
    calls = []

    @asynccontextmanager
    async def _open(**kwargs):
        calls.append(kwargs)
        yield fake_store

    _open.calls = calls
    return _open


@pytest.fixture
def write_seed(tmp_path: Path):
    """Write a seed file into tmp_path and return its path."""

    def _write(docs, name: str = "seed-data.json") -> Path:
        path = tmp_path / name
        path.write_text(docs if isinstance(docs, str) else json.dumps(docs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def abc_docs() -> List[dict]:
    """Three sample documents with ids a, b, c."""
    return [
        {"id": "a", "title": "Azure Functions", "content": "Serverless compute", "category": "Compute",
         "titleVector": [0.1, 0.2], "contentVector": [0.3, 0.4]},
        {"id": "b", "title": "Cosmos DB", "content": "NoSQL database", "category": "Databases",
         "titleVector": [0.5, 0.6]},
        {"id": "c", "title": "Blob Storage", "content": "Object storage", "category": "Storage"},
    ]
