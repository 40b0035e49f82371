"""Cosmos DB access for the seeder.

This module centralizes client construction and the two remote operations the
pipeline needs:
- build_credential: Azure credential chain used when the caller supplies none.
- open_store: Async context manager that constructs the Cosmos client, yields a
  DocumentStore bound to (database, container), and always closes the client.
- DocumentStore: create-if-absent writes and the container count, with Cosmos
  errors mapped onto the seeder error taxonomy.

Configuration is read from cosmos_seeder.config.settings unless overridden.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from azure.core.exceptions import ClientAuthenticationError
from azure.cosmos import exceptions
from azure.cosmos.aio import CosmosClient
from azure.identity.aio import DefaultAzureCredential, ManagedIdentityCredential

from cosmos_seeder.config import Settings, settings as default_settings
from cosmos_seeder.errors import (
    AuthorizationError,
    ConfigurationError,
    DocumentConflictError,
    TransientWriteError,
    VerificationError,
)
from cosmos_seeder.schemas import StorageRecord

logger = logging.getLogger(__name__)

COUNT_QUERY = "SELECT VALUE COUNT(1) FROM c"
AUTH_STATUS_CODES = (401, 403)


def build_credential(cfg: Optional[Settings] = None):
    """Return the async Azure credential used to reach Cosmos DB.

    Uses the user-assigned managed identity when AZURE_CLIENT_ID is set, otherwise
    the DefaultAzureCredential chain (environment, managed identity, Azure CLI, ...).
    """
    cfg = cfg or default_settings
    if cfg.AZURE_CLIENT_ID:
        return ManagedIdentityCredential(client_id=cfg.AZURE_CLIENT_ID)
    return DefaultAzureCredential()


class DocumentStore:
    """A single Cosmos container seen through the operations the seeder uses.

    The wrapped container proxy is shared by all concurrent writes of a batch and
    is never mutated.
    """

    def __init__(self, container, name: str = ""):
        self._container = container
        self.name = name or getattr(container, "id", "")

    async def create_document(self, record: StorageRecord) -> None:
        """Create the document unless one with the same id exists in its partition.

        Raises:
            DocumentConflictError: The document already exists (HTTP 409).
            AuthorizationError: HTTP 401/403, or no token could be acquired.
            TransientWriteError: Any other failure.
        """
        try:
            await self._container.create_item(body=record.model_dump())
        except exceptions.CosmosResourceExistsError as e:
            raise DocumentConflictError(record.id) from e
        except exceptions.CosmosHttpResponseError as e:
            if e.status_code == 409:
                raise DocumentConflictError(record.id) from e
            if e.status_code in AUTH_STATUS_CODES:
                raise AuthorizationError(
                    f"Cosmos DB rejected the write of {record.id}", status_code=e.status_code
                ) from e
            raise TransientWriteError(record.id, e.message or str(e), e.status_code) from e
        except ClientAuthenticationError as e:
            raise AuthorizationError(f"Could not acquire a token for Cosmos DB: {e}") from e
        except Exception as e:
            raise TransientWriteError(record.id, str(e)) from e

    async def count_documents(self) -> int:
        """Return the number of documents currently in the container.

        Raises:
            VerificationError: If the count query fails for any reason.
        """
        try:
            total = 0
            async for value in self._container.query_items(query=COUNT_QUERY):
                total += int(value)
            return total
        except Exception as e:
            raise VerificationError(f"Could not count documents in {self.name or 'container'}: {e}") from e


@asynccontextmanager
async def open_store(
    endpoint: Optional[str] = None,
    database: Optional[str] = None,
    container: Optional[str] = None,
    credential=None,
    cfg: Optional[Settings] = None,
) -> AsyncIterator[DocumentStore]:
    """Provide a DocumentStore for the lifetime of a seeding run.

    Yields:
        DocumentStore: Bound to the configured database and container.

    Raises:
        ConfigurationError: If no endpoint is configured.

    Notes:
        - The Cosmos client is always closed on exit, including on errors.
        - A credential built here is closed too; a caller-supplied one is not.
    """
    cfg = cfg or default_settings
    endpoint = endpoint or cfg.COSMOS_DB_ENDPOINT
    database = database or cfg.COSMOS_DATABASE
    container = container or cfg.COSMOS_CONTAINER
    if not endpoint:
        raise ConfigurationError(
            "Cosmos DB endpoint not configured. Set COSMOS_DB_ENDPOINT in .env or the environment."
        )

    owns_credential = credential is None
    if owns_credential:
        credential = build_credential(cfg)

    client = CosmosClient(endpoint, credential=credential)
    logger.info("Opened Cosmos client for %s (database=%s, container=%s)", endpoint, database, container)
    try:
        proxy = client.get_database_client(database).get_container_client(container)
        yield DocumentStore(proxy, name=f"{database}/{container}")
    finally:
        await client.close()
        if owns_credential:
            await credential.close()
