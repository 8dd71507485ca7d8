"""Turn resolution engine for Tribes.

This package contains the core game logic:
- combat: Strength and casualty model
- effects: Technology and asset bonuses
- journeys / arrivals: Multi-turn movement and what happens on arrival
- executors / sabotage / diplomacy: One handler per player action
- upkeep: Research, income, food and timers
- orchestrator: Phase sequencing, invariants and all-or-nothing commit

Usage:
    from tribes.engine import resolve_turn
    from tribes.models import MoveAction

    result = resolve_turn(state, {
        "tribe-1": [MoveAction(start_location="050.050", destination="051.050", troops=5)],
    })
    if result.success:
        state = result.state
    else:
        print(f"Turn failed during {result.phase.value}: {result.error}")
"""

from tribes.engine.combat import (
    CombatContext,
    CombatOutcome,
    casualty_fractions,
    effective_strength,
    resolve_combat,
)
from tribes.engine.context import TurnContext
from tribes.engine.effects import CombinedEffects, get_combined_effects
from tribes.engine.orchestrator import (
    InvariantViolation,
    TurnError,
    TurnPhase,
    TurnResult,
    check_invariants,
    resolve_turn,
    tribe_score,
)

__all__ = [
    # Orchestration
    "resolve_turn",
    "TurnResult",
    "TurnPhase",
    "TurnError",
    "InvariantViolation",
    "check_invariants",
    "tribe_score",
    "TurnContext",
    # Combat
    "CombatContext",
    "CombatOutcome",
    "casualty_fractions",
    "effective_strength",
    "resolve_combat",
    # Effects
    "CombinedEffects",
    "get_combined_effects",
]
