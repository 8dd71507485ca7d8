"""SQLite-based repository implementation.

Stores each game's snapshot as a JSON blob alongside indexed metadata.
"""

import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from tribes.models.state import GameState
from tribes.storage.repository import GameStateRepository

logger = logging.getLogger(__name__)


def dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict:
    """Convert sqlite3 row to dict."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class SQLiteGameStateRepository(GameStateRepository):
    """SQLite-based game state repository."""

    def __init__(self, database_uri: str = "instance/tribes.db"):
        """Initialize repository.

        Args:
            database_uri: Path to SQLite database file
        """
        self.database_path = Path(database_uri)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = dict_factory
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS games (
                id TEXT PRIMARY KEY,
                turn INTEGER DEFAULT 1,
                tribes INTEGER DEFAULT 0,
                data TEXT NOT NULL,
                created_at TEXT,
                updated_at TEXT
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_games_updated_at ON games(updated_at)")
        conn.commit()
        conn.close()

    def save_game(self, game_id: str, state: GameState) -> None:
        """Persist complete game state."""
        now = datetime.now(timezone.utc).isoformat()

        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO games (id, turn, tribes, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                turn = excluded.turn,
                tribes = excluded.tribes,
                data = excluded.data,
                updated_at = excluded.updated_at
        """, (
            game_id,
            state.turn,
            len(state.tribes),
            json.dumps(state.model_dump(mode="json")),
            now,
            now,
        ))
        conn.commit()
        conn.close()
        logger.debug(f"Saved game {game_id} at turn {state.turn}")

    def load_game(self, game_id: str) -> Optional[GameState]:
        """Load game state by ID."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT data FROM games WHERE id = ?", (game_id,))
        row = cursor.fetchone()
        conn.close()

        if row is None:
            return None
        return GameState.model_validate(json.loads(row["data"]))

    def list_games(self) -> list[dict]:
        """List stored games."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            SELECT id, turn, tribes, updated_at
            FROM games
            ORDER BY updated_at DESC
        """)
        rows = cursor.fetchall()
        conn.close()
        return rows

    def delete_game(self, game_id: str) -> bool:
        """Delete game record."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM games WHERE id = ?", (game_id,))
        deleted = cursor.rowcount > 0
        conn.commit()
        conn.close()
        return deleted
