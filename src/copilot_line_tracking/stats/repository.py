"""DuckDB key/value slot holding the last-known stats for fast reload."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import duckdb
import orjson

QUICK_RELOAD_KEY = "copilotStats"


class QuickReloadError(RuntimeError):
    """Raised when the quick-reload slot cannot be opened, read or written."""


def quick_reload_key_for(workspace_root: Path | None) -> str:
    """Return the slot key of one workspace root; sessions without a root share the bare key."""
    if workspace_root is None:
        return QUICK_RELOAD_KEY
    return f"{QUICK_RELOAD_KEY}:{workspace_root}"


class QuickReloadRepository:
    """Per-user key/value state, one key per workspace root."""

    def __init__(self, database_path: Path, read_only: bool = False) -> None:
        self._database_path = database_path
        try:
            self._connection = duckdb.connect(str(database_path), read_only=read_only)
        except duckdb.Error as exc:
            raise QuickReloadError(f"Failed to open quick-reload state at {database_path}: {exc}") from exc

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        self._connection.close()

    def ensure_schema(self) -> None:
        """Create the key/value table when missing."""
        try:
            _ = self._connection.execute(
                """
CREATE TABLE IF NOT EXISTS quick_reload_state (
    state_key VARCHAR PRIMARY KEY,
    state_value VARCHAR NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
                """
            )
        except duckdb.Error as exc:
            raise QuickReloadError(f"Failed to create quick-reload table in {self._database_path}.") from exc

    def get(self, key: str = QUICK_RELOAD_KEY) -> Any | None:
        """Return the decoded value stored under `key`, or None when absent."""
        try:
            row = self._connection.execute(
                """
SELECT state_value
FROM quick_reload_state
WHERE state_key = ?
                """,
                [key],
            ).fetchone()
        except duckdb.Error as exc:
            raise QuickReloadError(f"Failed to read quick-reload key {key!r} from {self._database_path}.") from exc
        if row is None:
            return None
        try:
            return orjson.loads(row[0])
        except orjson.JSONDecodeError as exc:
            raise QuickReloadError(f"Quick-reload key {key!r} holds malformed JSON.") from exc

    def put(self, value: Any, key: str = QUICK_RELOAD_KEY) -> None:
        """Insert or replace the value stored under `key`."""
        try:
            _ = self._connection.execute(
                """
INSERT INTO quick_reload_state (state_key, state_value)
VALUES (?, ?)
ON CONFLICT (state_key)
DO UPDATE SET
    state_value = EXCLUDED.state_value,
    updated_at = NOW()
                """,
                [key, orjson.dumps(value).decode()],
            )
        except duckdb.Error as exc:
            raise QuickReloadError(f"Failed to write quick-reload key {key!r} to {self._database_path}.") from exc
