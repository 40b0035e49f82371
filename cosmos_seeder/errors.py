"""Error taxonomy for the seeding pipeline.

Stage-level errors (configuration, input, authorization) terminate a run.
Per-record errors (conflict, transient write failure) are absorbed into the
upload tallies by the uploader and never escalate past a batch.
"""
from typing import Optional

PERMISSION_HINT = (
    "Role assignments on the Cosmos DB account can take several minutes to propagate. "
    "Check that the identity has the 'Cosmos DB Built-in Data Contributor' role and retry later."
)


class SeederError(Exception):
    """Base class for every error raised by the seeder."""


class ConfigurationError(SeederError):
    """Required configuration (e.g. the Cosmos endpoint) is missing."""


class InputNotFoundError(SeederError):
    """The seed file does not exist."""


class InputMalformedError(SeederError):
    """The seed file cannot be parsed as an array of documents."""


class DocumentConflictError(SeederError):
    """A document with the same id already exists in the target partition."""

    def __init__(self, doc_id: str):
        super().__init__(f"Document {doc_id!r} already exists")
        self.doc_id = doc_id


class AuthorizationError(SeederError):
    """The store rejected the caller (401/403) or no token could be acquired."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.hint = PERMISSION_HINT

    def __str__(self) -> str:
        base = super().__str__()
        code = f" (HTTP {self.status_code})" if self.status_code else ""
        return f"{base}{code}. {self.hint}"


class TransientWriteError(SeederError):
    """Any other per-document write failure."""

    def __init__(self, doc_id: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"Error uploading {doc_id}: {message}")
        self.doc_id = doc_id
        self.status_code = status_code


class VerificationError(SeederError):
    """The document count could not be read back."""


class PipelineStageError(SeederError):
    """Wraps the first fatal error of a run with the stage it happened in."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"Seeding failed during {stage}: {cause}")
        self.stage = stage
        self.cause = cause
