"""Storage module for Tribes.

Persistence sits outside the turn engine: a repository loads a GameState
before a turn and saves the committed state afterwards.

Usage:
    from tribes.storage import get_game_repository

    # Get repository using configured backend (from environment)
    games = get_game_repository()
    state = games.load_game("my-game")

    # Or specify backend explicitly
    from tribes.storage import StorageBackend
    games = get_game_repository(StorageBackend.SQLITE)

Configuration via environment variables:
    TRIBES_STORAGE_BACKEND: "file" or "sqlite" (default: "file")
    TRIBES_GAMES_PATH: Path to games directory (default: "games")
    TRIBES_DATABASE_URI: SQLite database path (default: "instance/tribes.db")
    TRIBES_TURN_TIMEOUT: Seconds before a turn resolution is abandoned (default: 30)
"""

from .config import (
    StorageBackend,
    get_database_uri,
    get_game_repository,
    get_games_path,
    get_storage_backend,
    get_turn_timeout,
)
from .file_repo import FileGameStateRepository
from .repository import GameStateRepository
from .sqlite_repo import SQLiteGameStateRepository

__all__ = [
    # Abstract interface
    "GameStateRepository",
    # Implementations
    "FileGameStateRepository",
    "SQLiteGameStateRepository",
    # Configuration
    "StorageBackend",
    "get_storage_backend",
    "get_games_path",
    "get_database_uri",
    "get_turn_timeout",
    # Factory functions
    "get_game_repository",
]
