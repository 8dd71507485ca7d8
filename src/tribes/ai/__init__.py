"""AI strategies for computer-controlled tribes.

Every archetype implements the TribeStrategy interface. `prepare_ai_actions`
fills in orders for AI tribes that have not submitted before a turn is
resolved.
"""

from tribes.ai.archetypes import (
    STRATEGIES,
    Aggressive,
    Bandit,
    Defensive,
    Expansionist,
    Scavenger,
    Trader,
    Wanderer,
)
from tribes.ai.base import EnemySighting, TribeStrategy, get_strategy, prepare_ai_actions

__all__ = [
    # Base classes
    "TribeStrategy",
    "EnemySighting",
    # Factory functions
    "get_strategy",
    "prepare_ai_actions",
    # Archetypes
    "STRATEGIES",
    "Wanderer",
    "Aggressive",
    "Defensive",
    "Expansionist",
    "Trader",
    "Scavenger",
    "Bandit",
]
