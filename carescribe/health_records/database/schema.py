"""
CareScribe Database Schema
Records are kept as JSON collections under well-known keys, so the same
stores can run against SQLite or a purely in-memory map.
"""

SCHEMA = """
-- =============================================================================
-- KV_STORE - One JSON document per collection
-- =============================================================================
-- Keys: cs_appointments, cs_medications, cs_custom_events, cs_transcripts,
--       cs_documents, cs_completed_tasks, cs_notifications
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""
