"""
Shared pytest fixtures for vectorstore filter tests.
"""

import json
import logging
import sys
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from vectorstore.filter import (
    FilterExpressionBuilder, FilterExpressionTextParser, MongoFilterParser
)

# Keep converter debug output out of test runs
logging.basicConfig(level=logging.CRITICAL)


@pytest.fixture
def b():
    """Provide a FilterExpressionBuilder."""
    return FilterExpressionBuilder()


@pytest.fixture
def text_parser():
    return FilterExpressionTextParser()


@pytest.fixture
def mongo_parser():
    return MongoFilterParser()


# ============================================================================
# SQLite fixtures
# ============================================================================

DOCUMENTS = [
    ("doc1", "Cricket world cup 1983", {"country": "IN", "year": 1983, "rating": 4.5,
                                         "final": True, "genre": "sport"}),
    ("doc2", "Cricket world cup 2011", {"country": "IN", "year": 2011, "rating": 3.0,
                                         "final": False, "genre": "sport"}),
    ("doc3", "Bulgarian drama", {"country": "BG", "year": 2020, "rating": 4.0,
                                  "final": False, "genre": "drama",
                                  "author name": "Kate"}),
    ("doc4", "Bulgarian comedy", {"country": "BG", "year": 2023, "genre": "comedy",
                                   "info": {"lang": "bg"}}),
    ("doc5", "Untagged", {"year": 1999}),
]


@pytest_asyncio.fixture
async def documents_db():
    """Provide an in-memory SQLite database with a JSON metadata column."""
    async with aiosqlite.connect(":memory:") as db:
        await db.execute(
            "CREATE TABLE documents (id TEXT PRIMARY KEY, content TEXT, metadata TEXT)"
        )
        await db.executemany(
            "INSERT INTO documents (id, content, metadata) VALUES (?, ?, ?)",
            [(doc_id, content, json.dumps(meta)) for doc_id, content, meta in DOCUMENTS],
        )
        await db.commit()
        yield db


@pytest_asyncio.fixture
async def select_ids(documents_db):
    """Provide a helper returning sorted document ids matching a WHERE clause."""
    async def _select(where_clause: str):
        cursor = await documents_db.execute(f"SELECT id FROM documents m WHERE {where_clause}")
        rows = await cursor.fetchall()
        await cursor.close()
        return sorted(row[0] for row in rows)
    return _select
