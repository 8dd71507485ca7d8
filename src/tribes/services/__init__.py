"""Services around the turn engine: game setup and turn resolution."""

from tribes.services.game_setup import build_map, new_game, starting_locations
from tribes.services.turn_service import GameNotFoundError, TurnService

__all__ = [
    "GameNotFoundError",
    "TurnService",
    "build_map",
    "new_game",
    "starting_locations",
]
