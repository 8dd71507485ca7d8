"""Configuration for the Tribes engine's outer layers.

Storage backend selection and the turn timeout are read from environment
variables, with a factory that builds the configured repository.
"""

import os
from enum import Enum

from tribes.storage.file_repo import FileGameStateRepository
from tribes.storage.repository import GameStateRepository
from tribes.storage.sqlite_repo import SQLiteGameStateRepository


class StorageBackend(Enum):
    """Available storage backends."""

    FILE = "file"
    SQLITE = "sqlite"


# Default configuration (can be overridden via environment variables)
DEFAULT_STORAGE_BACKEND = StorageBackend.FILE
DEFAULT_GAMES_PATH = "games"
DEFAULT_DATABASE_URI = "instance/tribes.db"
DEFAULT_TURN_TIMEOUT = 30.0


def get_storage_backend() -> StorageBackend:
    """Get configured storage backend from environment.

    Returns:
        StorageBackend enum value
    """
    backend_str = os.environ.get("TRIBES_STORAGE_BACKEND", "file").lower()
    if backend_str == "sqlite":
        return StorageBackend.SQLITE
    return StorageBackend.FILE


def get_games_path() -> str:
    """Get configured games path from environment."""
    return os.environ.get("TRIBES_GAMES_PATH", DEFAULT_GAMES_PATH)


def get_database_uri() -> str:
    """Get configured database URI from environment."""
    return os.environ.get("TRIBES_DATABASE_URI", DEFAULT_DATABASE_URI)


def get_turn_timeout() -> float:
    """Seconds a turn resolution may run before it is treated as failed."""
    raw = os.environ.get("TRIBES_TURN_TIMEOUT")
    if not raw:
        return DEFAULT_TURN_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"TRIBES_TURN_TIMEOUT must be a number of seconds, got {raw!r}") from None


def get_game_repository(
    backend: StorageBackend | None = None,
) -> GameStateRepository:
    """Factory function to create the game state repository.

    Args:
        backend: Storage backend to use. If None, uses environment config.

    Returns:
        GameStateRepository instance
    """
    if backend is None:
        backend = get_storage_backend()

    if backend == StorageBackend.SQLITE:
        return SQLiteGameStateRepository(get_database_uri())
    return FileGameStateRepository(get_games_path())
