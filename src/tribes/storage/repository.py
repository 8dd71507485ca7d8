"""Abstract repository interface for Tribes game storage.

The turn engine never touches storage itself. A repository loads a whole
GameState before a turn and saves the committed one afterwards. Both the
file-based (JSON) and SQLite backends implement this interface, so the turn
service and CLI work without knowing which backend is active.
"""

from abc import ABC, abstractmethod
from typing import Optional

from tribes.models.state import GameState


class GameStateRepository(ABC):
    """Abstract base class for game state storage."""

    @abstractmethod
    def save_game(self, game_id: str, state: GameState) -> None:
        """Persist a complete game state, replacing any previous snapshot.

        Args:
            game_id: Unique identifier for the game
            state: Committed game state
        """
        pass

    @abstractmethod
    def load_game(self, game_id: str) -> Optional[GameState]:
        """Load game state by ID.

        Args:
            game_id: ID of game to load

        Returns:
            GameState, or None if not found
        """
        pass

    @abstractmethod
    def list_games(self) -> list[dict]:
        """List stored games, most recently updated first.

        Returns:
            List of dicts containing: {id, turn, tribes, updated_at}
        """
        pass

    @abstractmethod
    def delete_game(self, game_id: str) -> bool:
        """Delete a game.

        Args:
            game_id: ID of game to delete

        Returns:
            True if deleted, False if not found
        """
        pass
