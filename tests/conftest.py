"""Shared test fixtures for sheetorm tests."""

from __future__ import annotations

import pytest

from sheetorm import DataTypes, Model, Schema, SheetClient, SheetOrmConfig
from tests.fakes import RecordingStore

# --- Test schemas ---

USER_SCHEMA = Schema(
    {
        "id": {"type": DataTypes.Number, "auto_increment": True},
        "name": DataTypes.String,
        "age": DataTypes.Number,
        "email": {"type": DataTypes.String, "unique": True},
        "deleted_at": DataTypes.Date.deleted_at(),
    }
)

USER_HEADER = ["id", "name", "age", "email", "deleted_at"]

USER_ROWS = [
    ["1", "Alice", "25", "alice@example.com", ""],
    ["2", "Bob", "30", "bob@example.com", ""],
    ["3", "Charlie", "20", "charlie@example.com", ""],
    ["4", "David", "25", "david@example.com", "2023-01-01T00:00:00.000Z"],
]

POST_SCHEMA = Schema(
    {
        "id": DataTypes.Number.auto_increment(),
        "title": DataTypes.String,
        "user_id": DataTypes.Number,
        "published": {"type": DataTypes.Boolean, "default": False},
    }
)

POST_HEADER = ["id", "title", "user_id", "published"]

POST_ROWS = [
    ["101", "Hello", "1", "true"],
    ["102", "Second", "1", "false"],
    ["103", "Bob's post", "2", "true"],
]


# --- Fixtures ---


@pytest.fixture
def store():
    """A recording in-memory store seeded with Users and Posts."""
    return RecordingStore(
        {
            "Users": [USER_HEADER, *USER_ROWS],
            "Posts": [POST_HEADER, *POST_ROWS],
        }
    )


@pytest.fixture
def client(store):
    """Client with caching disabled so every read reaches the store."""
    return SheetClient(store, SheetOrmConfig(cache_ttl_ms=0))


@pytest.fixture
def users(client):
    return Model(client, "Users", USER_SCHEMA)


@pytest.fixture
def posts(client):
    return Model(client, "Posts", POST_SCHEMA)
