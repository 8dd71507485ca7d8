"""Per-turn working context shared by every resolution phase.

The orchestrator builds one TurnContext around an isolated copy of the game
state. Executors, the journey scheduler, the diplomacy manager and upkeep all
mutate `ctx.state` through it and append their outcome messages to
`ctx.results`; nothing touches the caller's state until commit.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from tribes.engine.effects import CombinedEffects, get_combined_effects
from tribes.models.hexmap import HexData
from tribes.models.state import (
    ActionResult,
    Chief,
    Force,
    GameState,
    Garrison,
    Journey,
    JourneyStatus,
    JourneyType,
    Tribe,
)
from tribes.models.actions import Payload
from tribes.spatial import hex_distance, travel_turns

logger = logging.getLogger(__name__)


@dataclass
class TurnContext:
    """Mutable working set for one turn.

    Attributes:
        state: The working copy being mutated
        rng: The turn's seeded random generator
        results: Outcome messages per tribe id
    """

    state: GameState
    rng: random.Random
    results: dict[str, list[ActionResult]] = field(default_factory=dict)
    _counter: int = 0
    _hexes: dict[str, HexData] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._hexes = {h.key: h for h in self.state.map_data}
        for tribe in self.state.tribes:
            self.results.setdefault(tribe.id, [])

    @property
    def turn(self) -> int:
        return self.state.turn

    # ===== Lookups =====

    def tribe(self, tribe_id: str | None) -> Tribe | None:
        if tribe_id is None:
            return None
        return self.state.get_tribe(tribe_id)

    def hex(self, key: str) -> HexData | None:
        return self._hexes.get(key)

    def owner_of(self, key: str) -> Tribe | None:
        return self.state.hex_owner(key)

    def effects(self, tribe: Tribe) -> CombinedEffects:
        return get_combined_effects(tribe)

    # ===== Bookkeeping =====

    def next_id(self, prefix: str) -> str:
        """Deterministic identifier unique within the game."""
        self._counter += 1
        return f"{prefix}-t{self.turn}-{self._counter}"

    def report(
        self,
        tribe_id: str,
        action_type: str,
        message: str,
        success: bool = True,
        action_id: str | None = None,
        **data: Any,
    ) -> ActionResult:
        """Record an outcome message for a tribe."""
        result = ActionResult(
            action_id=action_id or self.next_id("event"),
            action_type=str(getattr(action_type, "value", action_type)),
            message=message,
            success=success,
            data=data,
        )
        self.results.setdefault(tribe_id, []).append(result)
        if not success:
            logger.debug(f"[turn {self.turn}] {tribe_id} {result.action_type} rejected: {message}")
        return result

    def fail(self, tribe_id: str, action: Any, message: str, **data: Any) -> ActionResult:
        """Record a rejected action; the action has no effect."""
        return self.report(tribe_id, action.action_type, message, success=False, action_id=action.id, **data)

    # ===== Journeys =====

    def add_journey(self, journey: Journey) -> None:
        self.state.journeys.append(journey)

    def remove_journey(self, journey_id: str) -> None:
        self.state.journeys = [j for j in self.state.journeys if j.id != journey_id]

    def journey(self, journey_id: str) -> Journey | None:
        for journey in self.state.journeys:
            if journey.id == journey_id:
                return journey
        return None

    def send_home(
        self,
        tribe: Tribe,
        force: Force,
        from_hex: str,
        home: str,
        payload: Payload | None = None,
        source_id: str | None = None,
    ) -> Journey | None:
        """Dispatch a Return journey back to a garrison.

        The trip takes as long as the outbound leg would at the tribe's
        current speed. If the home garrison is gone the force heads for the
        nearest remaining one, or back to `home` to re-establish it.

        Returns:
            The new journey, or None if the force is already home
        """
        destination = home if home in tribe.garrisons else nearest_garrison(tribe, from_hex) or home
        if destination == from_hex:
            merge_force(tribe, destination, force)
            if payload is not None:
                deposit_payload(tribe, destination, payload)
            return None
        journey = Journey(
            id=f"return-{source_id}" if source_id else self.next_id("return"),
            owner_tribe_id=tribe.id,
            type=JourneyType.RETURN,
            origin=from_hex,
            destination=destination,
            force=force,
            payload=payload or Payload(),
            arrival_turn=travel_turns(from_hex, destination, self.effects(tribe).movement_speed),
            status=JourneyStatus.RETURNING,
        )
        self.add_journey(journey)
        return journey


# ===== Garrison helpers =====


def merge_force(tribe: Tribe, key: str, force: Force) -> Garrison:
    """Add a force to the tribe's garrison at key, creating it if needed."""
    garrison = tribe.garrisons.setdefault(key, Garrison())
    garrison.troops += force.troops
    garrison.weapons += force.weapons
    garrison.chiefs.extend(force.chiefs)
    return garrison


def deposit_payload(tribe: Tribe, key: str, payload: Payload) -> None:
    """Food and scrap go to global stores, weapons to the garrison at key."""
    tribe.global_resources.food += payload.food
    tribe.global_resources.scrap += payload.scrap
    if payload.weapons:
        tribe.garrisons.setdefault(key, Garrison()).weapons += payload.weapons


def detach_force(
    garrison: Garrison, troops: int, weapons: int, chief_names: list[str]
) -> Force:
    """Remove troops, weapons and named chiefs from a garrison."""
    garrison.troops -= troops
    garrison.weapons -= weapons
    chiefs: list[Chief] = garrison.take_chiefs(chief_names)
    if garrison.poisoned_troops > garrison.troops:
        garrison.poisoned_troops = garrison.troops
    return Force(troops=troops, weapons=weapons, chiefs=chiefs)


def nearest_garrison(tribe: Tribe, key: str, exclude: str | None = None) -> str | None:
    """Closest garrison of the tribe to key; ties broken by key order."""
    candidates = sorted(k for k in tribe.garrisons if k != exclude)
    if not candidates:
        return None
    return min(candidates, key=lambda k: hex_distance(k, key))


def prune_abandoned(tribe: Tribe) -> list[str]:
    """Drop garrisons with no troops and no chiefs; returns lost hexes.

    Weapons left in an abandoned garrison are lost with it.
    """
    lost = [k for k, g in tribe.garrisons.items() if g.is_abandoned()]
    for key in lost:
        del tribe.garrisons[key]
    return lost
