"""Conversion of seed documents into the Cosmos container schema."""
from typing import Iterable, List

from cosmos_seeder.schemas import SourceRecord, StorageRecord


def to_storage_record(source: SourceRecord) -> StorageRecord:
    """Copy a SourceRecord into a StorageRecord partitioned by category.

    Vectors are copied as-is; no normalization or dimension check.
    """
    return StorageRecord(
        id=source.id,
        title=source.title,
        content=source.content,
        category=source.category,
        titleVector=list(source.titleVector),
        contentVector=list(source.contentVector),
        partitionKey=source.category,
    )


def transform_records(sources: Iterable[SourceRecord]) -> List[StorageRecord]:
    return [to_storage_record(s) for s in sources]
