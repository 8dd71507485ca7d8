"""JSON file-based repository implementation.

Each game is one JSON file named after its ID, holding the state snapshot
plus a little metadata for listings.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from tribes.models.state import GameState
from tribes.storage.repository import GameStateRepository

logger = logging.getLogger(__name__)


class FileGameStateRepository(GameStateRepository):
    """JSON file-based game state repository.

    Writes go to a temporary file that is then renamed over the old
    snapshot, so a crash mid-write never leaves a truncated game behind.
    """

    def __init__(self, games_path: str | Path = "games"):
        """Initialize repository.

        Args:
            games_path: Path to games directory
        """
        self.games_path = Path(games_path)
        self.games_path.mkdir(parents=True, exist_ok=True)

    def _get_game_path(self, game_id: str) -> Path:
        """Get path to game file."""
        return self.games_path / f"{game_id}.json"

    def save_game(self, game_id: str, state: GameState) -> None:
        """Persist complete game state."""
        path = self._get_game_path(game_id)
        record = {
            "id": game_id,
            "turn": state.turn,
            "tribes": len(state.tribes),
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "state": state.model_dump(mode="json"),
        }
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(record, f, indent=2)
        tmp_path.replace(path)
        logger.debug(f"Saved game {game_id} at turn {state.turn} to {path}")

    def load_game(self, game_id: str) -> Optional[GameState]:
        """Load game state by ID."""
        path = self._get_game_path(game_id)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            record = json.load(f)
        return GameState.model_validate(record["state"])

    def list_games(self) -> list[dict]:
        """List stored games."""
        games = []
        for path in self.games_path.glob("*.json"):
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            games.append({
                "id": data.get("id", path.stem),
                "turn": data.get("turn", 1),
                "tribes": data.get("tribes", 0),
                "updated_at": data.get("updated_at", ""),
            })
        return sorted(games, key=lambda x: x.get("updated_at", ""), reverse=True)

    def delete_game(self, game_id: str) -> bool:
        """Delete game file."""
        path = self._get_game_path(game_id)
        if path.exists():
            path.unlink()
            return True
        return False
