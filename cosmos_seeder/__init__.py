"""Seeder for the Cosmos DB vector container behind the RAG chat sample.

Submodules overview:
- main: FastAPI application exposing health and seeding endpoints.
- config: Settings and environment variable loading.
- schemas: Pydantic models for seed documents, tallies and API contracts.
- errors: Error taxonomy shared by every stage.
- loader: Seed file discovery and parsing.
- transform: SourceRecord -> StorageRecord conversion (partition key).
- store: Cosmos client scope and document operations.
- uploader: Batched concurrent create-if-absent upload with progress reporting.
- pipeline: Load -> Transform -> Upload orchestration.
- ingestion: Command-line seeding job.
- obs: Observability utilities (tracing/spans).
"""
