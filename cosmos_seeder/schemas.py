"""Pydantic models for seed documents, upload results and the API.

Defines the data contracts used across the pipeline and the FastAPI endpoints:
- SourceRecord: One pre-embedded document as read from the seed file.
- StorageRecord: The document as written to Cosmos DB (adds partitionKey).
- UploadSummary: Final tallies of an upload run plus the count check.
- SeedRequest / SeedResponse: Public contract of the /seed endpoint.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, FiniteFloat, field_validator


class SourceRecord(BaseModel):
    """A sample document as stored in the seed file.

    Attributes:
        id: Opaque document identifier (uniqueness is not checked locally).
        title: Document title.
        content: Document body.
        category: Free-text category, later used as the partition key.
        titleVector: Embedding of the title; empty when absent.
        contentVector: Embedding of the content; empty when absent.
    """
    id: str = ""
    title: str = ""
    content: str = ""
    category: str = ""
    titleVector: List[FiniteFloat] = Field(default_factory=list)
    contentVector: List[FiniteFloat] = Field(default_factory=list)

    @field_validator("id", "title", "content", "category", mode="before")
    @classmethod
    def _null_text(cls, v):
        return "" if v is None else v

    @field_validator("titleVector", "contentVector", mode="before")
    @classmethod
    def _null_vector(cls, v):
        return [] if v is None else v


class StorageRecord(SourceRecord):
    """A document in the Cosmos container schema.

    Attributes:
        partitionKey: Copy of category; documents sharing a category share a
            logical partition.
    """
    partitionKey: str = ""


class UploadSummary(BaseModel):
    """Outcome of one upload run.

    Attributes:
        uploaded: Documents created by this run.
        skipped: Documents that already existed (left untouched).
        errors: Documents whose write failed for any non-fatal reason.
        total: Number of documents handed to the uploader.
        batches: Number of batches that completed.
        cancelled: Whether the run stopped early on request.
        failed_ids: Ids of the documents counted in errors.
        count_before: Container count read before the upload, if available.
        count_after: Container count read after the upload, if available.
        verification_warning: Set when the count check could not confirm the
            expected growth. Never affects the upload outcome.
    """
    uploaded: int = 0
    skipped: int = 0
    errors: int = 0
    total: int = 0
    batches: int = 0
    cancelled: bool = False
    failed_ids: List[str] = Field(default_factory=list)
    count_before: Optional[int] = None
    count_after: Optional[int] = None
    verification_warning: Optional[str] = None

    @property
    def processed(self) -> int:
        return self.uploaded + self.skipped + self.errors


class SeedRequest(BaseModel):
    """Request body for triggering a seeding run.

    Attributes:
        seed_file: Optional seed file name, looked up in the seed directories
            (defaults to settings.SEED_FILE). Paths are not accepted.
        batch_size: Optional override of settings.SEED_BATCH_SIZE.
        batch_delay_seconds: Optional override of settings.SEED_BATCH_DELAY_SECONDS.
    """
    seed_file: Optional[str] = Field(default=None, pattern=r"^[\w.\-]+$")
    batch_size: Optional[int] = Field(default=None, ge=1, le=100)
    batch_delay_seconds: Optional[float] = Field(default=None, ge=0, le=60)


class SeedResponse(UploadSummary):
    """Response body of a completed seeding run.

    Attributes:
        messages: Every progress message emitted during the run, in order.
    """
    messages: List[str] = Field(default_factory=list)
