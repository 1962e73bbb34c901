"""
Database Schema Definitions

The client keeps no library data locally; the only table is a key-value
store used for the session token and the persisted playlist-queue.
"""

from __future__ import annotations

# Table structure SQL statements
TABLE_STATEMENTS = [
    # Application state key-value table
    """
    CREATE TABLE IF NOT EXISTS app_state (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

INDEX_STATEMENTS: list = []


def get_all_schema_statements() -> list:
    """Return all schema statements in execution order"""
    return TABLE_STATEMENTS + INDEX_STATEMENTS
