"""Seeder configuration and environment-driven settings.

Defines the Settings class based on pydantic-settings to centralize configuration for:
- Cosmos DB target (endpoint, database, container)
- Credential selection (managed identity client id)
- Seed file location and batching knobs
- Optional observability (Langfuse)

A light-weight local safety warning is printed if the Cosmos endpoint is not set when not running in Docker.
"""
import os
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Strongly-typed seeder settings loaded from environment variables.

    Uses pydantic-settings to populate fields from a .env file or process env.
    The endpoint also accepts the COSMOS_DB__ENDPOINT_DB name used by the
    deployment scripts.
    """
    # Cosmos DB target
    COSMOS_DB_ENDPOINT: str = Field(
        default="",
        validation_alias=AliasChoices("COSMOS_DB_ENDPOINT", "COSMOS_DB__ENDPOINT_DB"),
        description="Cosmos DB account endpoint, e.g. https://<account>.documents.azure.com:443/",
    )
    COSMOS_DATABASE: str = "vectordb"
    COSMOS_CONTAINER: str = "Container3"

    # Credentials
    AZURE_CLIENT_ID: str = ""  # user-assigned managed identity, optional

    # Seeding
    SEED_FILE: str = "seed-data.json"
    SEED_DATA_DIR: str = ""  # extra directory searched for SEED_FILE
    SEED_BATCH_SIZE: int = Field(default=5, ge=1)
    SEED_BATCH_DELAY_SECONDS: float = Field(default=0.2, ge=0)

    # Logging
    LOG_LEVEL: str = "INFO"

    # Observability (optional)
    LANGFUSE_HOST: str = ""
    LANGFUSE_PUBLIC_KEY: str = ""
    LANGFUSE_SECRET_KEY: str = ""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()

# Safety check for local dev (inside the container the endpoint is injected)
if os.environ.get("RUNNING_IN_DOCKER", "0") == "0":
    if not settings.COSMOS_DB_ENDPOINT:
        # Avoid raising so the CLI can still take --endpoint
        print("[WARN] COSMOS_DB_ENDPOINT not set. Set it in .env or pass --endpoint before seeding.")
