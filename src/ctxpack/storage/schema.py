"""Database schema for SQLite vector stores."""

SCHEMA = """
-- Records table: one row per stored chunk
CREATE TABLE IF NOT EXISTS records (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,  -- insertion order, used for stable ranking
    collection TEXT NOT NULL,
    id TEXT NOT NULL,
    text TEXT NOT NULL,
    metadata TEXT NOT NULL,                 -- JSON object
    embedding BLOB NOT NULL,                -- float32 vector
    UNIQUE (collection, id)
);

-- Indexes for efficient queries
CREATE INDEX IF NOT EXISTS idx_records_collection ON records(collection);
"""
