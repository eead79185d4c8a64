"""
Unit tests for the pgvector engine that need no database.
"""

import pytest

from memorystore.core.exceptions import ValidationError
from memorystore.engine.postgres import PgVectorEngine, quote_identifier


class TestPgVectorEngine:

    def test_requires_dsn_or_connection(self):
        with pytest.raises(ValueError):
            PgVectorEngine(3)

    def test_invalid_dimension(self):
        with pytest.raises(ValidationError):
            PgVectorEngine(0, dsn="postgresql://localhost/memories")

    def test_dsn_engine_owns_connection(self):
        engine = PgVectorEngine(3, dsn="postgresql://localhost/memories")

        assert engine.owns_connection
        assert engine.vector_dimension == 3

    @pytest.mark.asyncio
    async def test_close_before_connect(self):
        engine = PgVectorEngine(3, dsn="postgresql://localhost/memories")
        await engine.close()

    def test_quote_identifier_folds_case(self):
        assert quote_identifier("Docs") == '"docs"'
        assert quote_identifier('A"b') == '"a""b"'
