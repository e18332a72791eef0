"""
Local DuckDB file used as the durable key/value backend
"""

import logging
import os
import threading
from typing import Optional

import duckdb

logger = logging.getLogger(__name__)


class DuckDBKeyValueStore:
    """Synchronous key/value table on a DuckDB file; call through asyncio.to_thread"""

    def __init__(self, db_path: str, memory_limit: str = "256MB"):
        self.db_path = db_path
        self._lock = threading.Lock()

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self.conn = duckdb.connect(db_path)
        self.conn.execute(f"SET memory_limit='{memory_limit}'")
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key VARCHAR PRIMARY KEY,
                value VARCHAR NOT NULL,
                updated_at TIMESTAMP
            )
        """)
        logger.info(f"DuckDB key/value store ready: {db_path}")

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self.conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", [key]
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, payload: str):
        with self._lock:
            self.conn.execute("""
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, now())
                ON CONFLICT (key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
            """, [key, payload])

    def delete(self, key: str):
        with self._lock:
            self.conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def clear_prefix(self, prefix: str):
        with self._lock:
            self.conn.execute("DELETE FROM kv_store WHERE starts_with(key, ?)", [prefix])

    def close(self):
        with self._lock:
            self.conn.close()
