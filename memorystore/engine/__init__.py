"""
Backing engines for memorystore.

Available Engines:
    - SQLiteEngine: standard library sqlite3, cosine similarity as a SQL function
    - PgVectorEngine: PostgreSQL with the pgvector extension, via asyncpg

Example:
    >>> from memorystore.engine import SQLiteEngine
    >>> from memorystore import VectorMemoryStore
    >>>
    >>> store = VectorMemoryStore(SQLiteEngine(vector_dimension=384, database="./memories.db"))
"""

from .base import BaseEngine
from .sqlite import SQLiteEngine
from .postgres import PgVectorEngine

__all__ = [
    "BaseEngine",
    "SQLiteEngine",
    "PgVectorEngine",
]
