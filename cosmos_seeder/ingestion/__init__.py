"""Ingestion package for offline seeding jobs.

Contains the command-line seeder that populates the Cosmos DB container with
pre-embedded sample documents. See seed_cosmos.py.
"""
