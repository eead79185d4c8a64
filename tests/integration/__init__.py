"""
Integration tests for memorystore.

These tests drive the public store interface end to end against real
backing engines: in-memory and file SQLite always, PostgreSQL with
pgvector when a test database is configured.
"""

import os

import pytest


def get_test_dsn():
    """DSN of a scratch PostgreSQL database, or None."""
    return os.environ.get("MEMORYSTORE_TEST_DSN")


# Integration test markers
integration = pytest.mark.integration
requires_postgres = pytest.mark.skipif(
    get_test_dsn() is None,
    reason="MEMORYSTORE_TEST_DSN not set",
)
