"""Rule-based AI archetypes.

Each archetype embodies one play style. All choices that need randomness
draw from the generator passed in, so a seeded run proposes the same orders
every time.
"""

from __future__ import annotations

import random

from tribes.ai.base import TribeStrategy
from tribes.models.actions import (
    AttackAction,
    BuildOutpostAction,
    BuildWeaponsAction,
    DeclareWarAction,
    DefendAction,
    GameAction,
    MoveAction,
    Payload,
    RecruitAction,
    ResourceType,
    ScavengeAction,
    ScoutAction,
    TradeAction,
)
from tribes.models.state import AIType, DiplomaticStatus, GameState, Tribe
from tribes.parameters import OUTPOST_SCRAP_COST
from tribes.spatial import get_hexes_in_range, get_neighbors


def _war_orders(tribe: Tribe, enemy: Tribe, state: GameState) -> list[GameAction] | None:
    """Orders needed before attacking enemy; None while a truce forbids war."""
    relation = tribe.diplomacy.get(enemy.id)
    if relation and relation.status == DiplomaticStatus.WAR:
        return []
    if relation and relation.truce_until_turn is not None and state.turn < relation.truce_until_turn:
        return None
    return [DeclareWarAction(target_tribe_id=enemy.id)]


class Wanderer(TribeStrategy):
    """Moves its whole main garrison to a random neighbouring hex."""

    ai_type = AIType.WANDERER

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        action = self.wander(tribe, state, rng)
        return [action] if action else []

    def wander(self, tribe: Tribe, state: GameState, rng: random.Random) -> MoveAction | None:
        main = self.main_garrison(tribe)
        if main is None or main[1].troops == 0:
            return None
        key, garrison = main
        options = [
            k for k in get_neighbors(key)
            if self.passable(state, k) and getattr(state.hex_owner(k), "id", tribe.id) == tribe.id
        ]
        if not options:
            return None
        return MoveAction(
            start_location=key,
            destination=rng.choice(options),
            troops=garrison.troops,
            weapons=garrison.weapons,
            chiefs_to_move=[c.name for c in garrison.chiefs],
        )


class Aggressive(TribeStrategy):
    """Arms up and attacks the nearest non-allied garrison within 4 hexes."""

    ai_type = AIType.AGGRESSIVE
    reach = 4

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        actions: list[GameAction] = []
        enemies = self.find_enemies(tribe, state, self.reach)
        main = self.main_garrison(tribe)

        if enemies and main and main[1].troops >= 5 and tribe.global_resources.scrap >= 10:
            actions.append(BuildWeaponsAction(start_location=main[0], scrap=min(10, tribe.global_resources.scrap)))

        if enemies and main and main[1].troops >= 8:
            target = enemies[0]
            war = _war_orders(tribe, target.tribe, state)
            if war is not None:
                key, garrison = main
                actions.extend(war)
                actions.append(AttackAction(
                    start_location=key,
                    target_location=target.location,
                    troops=int(garrison.troops * 0.8),
                    weapons=garrison.weapons,
                    chiefs_to_move=[c.name for c in garrison.chiefs],
                ))

        if not actions:
            scout = scout_action(self, tribe, state, rng)
            if scout:
                actions.append(scout)
        return actions


class Defensive(TribeStrategy):
    """Stands guard, builds weapons and recruits."""

    ai_type = AIType.DEFENSIVE

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        actions: list[GameAction] = []
        main = self.main_garrison(tribe)
        if main is None:
            return actions
        key, garrison = main

        if self.find_enemies(tribe, state, 3) and garrison.troops >= 3:
            actions.append(DefendAction(start_location=key, troops=int(garrison.troops * 0.6)))
        if tribe.global_resources.scrap >= 15:
            actions.append(BuildWeaponsAction(start_location=key, scrap=min(15, tribe.global_resources.scrap)))
        if not actions and tribe.global_resources.food >= 30:
            actions.append(RecruitAction(start_location=key, food_offered=30))
        return actions


class Expansionist(TribeStrategy):
    """Claims unoccupied hexes with outposts."""

    ai_type = AIType.EXPANSIONIST

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        if tribe.global_resources.scrap >= OUTPOST_SCRAP_COST:
            builder = self.first_garrison(tribe, min_troops=6)
            if builder:
                targets = sorted(
                    k for k in get_hexes_in_range(builder[0], 2)
                    if self.passable(state, k) and state.hex_owner(k) is None
                )
                if targets:
                    return [BuildOutpostAction(start_location=builder[0], target_location=rng.choice(targets), troops=5)]

        scout = scout_action(self, tribe, state, rng)
        if scout:
            return [scout]
        if len(tribe.garrisons) > 1:
            move = Wanderer().wander(tribe, state, rng)
            return [move] if move else []
        return []


class Trader(TribeStrategy):
    """Sends food caravans to neutral or allied tribes, otherwise scavenges."""

    ai_type = AIType.TRADER

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        partners = [
            t for t in state.tribes
            if t.id != tribe.id and t.garrisons and tribe.relation_to(t.id) != DiplomaticStatus.WAR
        ]
        home = self.first_garrison(tribe, min_troops=2)
        if partners and home and tribe.global_resources.food >= 20:
            partner = rng.choice(partners)
            if partner.location != home[0]:
                return [TradeAction(
                    start_location=home[0],
                    target_tribe_id=partner.id,
                    troops=min(3, home[1].troops),
                    offer=Payload(food=20),
                    request=Payload(scrap=15),
                )]

        scavenge = scavenge_action(self, tribe, state, rng)
        return [scavenge] if scavenge else []


class Scavenger(TribeStrategy):
    """Scavenges explored hexes and recruits with spare food."""

    ai_type = AIType.SCAVENGER

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        actions: list[GameAction] = []
        scavenge = scavenge_action(self, tribe, state, rng)
        if scavenge:
            actions.append(scavenge)
        else:
            scout = scout_action(self, tribe, state, rng)
            if scout:
                actions.append(scout)

        main = self.main_garrison(tribe)
        if main and tribe.global_resources.food >= 25:
            actions.append(RecruitAction(start_location=main[0], food_offered=25))
        return actions


class Bandit(TribeStrategy):
    """Territorial raider: guards its camp and strikes anything within 3 hexes."""

    ai_type = AIType.BANDIT
    reach = 6

    def propose_actions(self, tribe: Tribe, state: GameState, rng: random.Random) -> list[GameAction]:
        actions: list[GameAction] = []
        main = self.main_garrison(tribe)
        if main is None:
            return actions
        key, garrison = main
        enemies = self.find_enemies(tribe, state, self.reach)

        if enemies:
            if garrison.troops >= 10:
                actions.append(DefendAction(start_location=key, troops=int(garrison.troops * 0.4)))
            nearest = enemies[0]
            attackers = int(garrison.troops * 0.6)
            if garrison.troops >= 20 and nearest.distance <= 3 and attackers >= 10:
                war = _war_orders(tribe, nearest.tribe, state)
                if war is not None:
                    actions.extend(war)
                    actions.append(AttackAction(
                        start_location=key,
                        target_location=nearest.location,
                        troops=attackers,
                        weapons=int(garrison.weapons * 0.8),
                        chiefs_to_move=[c.name for c in garrison.chiefs],
                    ))

        if not actions:
            if tribe.global_resources.scrap >= 15:
                actions.append(BuildWeaponsAction(start_location=key, scrap=min(20, tribe.global_resources.scrap)))
            elif tribe.global_resources.food >= 30:
                actions.append(RecruitAction(start_location=key, food_offered=30))
        return actions


# =============================================================================
# Shared order builders
# =============================================================================


def scout_action(strategy: TribeStrategy, tribe: Tribe, state: GameState, rng: random.Random) -> ScoutAction | None:
    found = strategy.first_garrison(tribe, min_troops=2)
    if found is None:
        return None
    key, garrison = found
    unexplored = [k for k in strategy.unexplored_near(tribe, state, key, 4) if k != key]
    if not unexplored:
        return None
    return ScoutAction(
        start_location=key,
        destination=rng.choice(unexplored),
        troops=2,
        weapons=min(1, garrison.weapons),
    )


def scavenge_action(strategy: TribeStrategy, tribe: Tribe, state: GameState, rng: random.Random) -> ScavengeAction | None:
    found = strategy.first_garrison(tribe, min_troops=3)
    if found is None:
        return None
    key, garrison = found
    known = set(tribe.explored_hexes)
    targets = sorted(
        k for k in get_hexes_in_range(key, 3)
        if k in known and strategy.passable(state, k) and state.hex_owner(k) is None
    )
    if not targets:
        return None
    return ScavengeAction(
        start_location=key,
        target_location=rng.choice(targets),
        troops=3,
        weapons=min(1, garrison.weapons),
        resource_type=rng.choice(list(ResourceType)),
    )


STRATEGIES: dict[AIType, type[TribeStrategy]] = {
    AIType.WANDERER: Wanderer,
    AIType.AGGRESSIVE: Aggressive,
    AIType.DEFENSIVE: Defensive,
    AIType.EXPANSIONIST: Expansionist,
    AIType.TRADER: Trader,
    AIType.SCAVENGER: Scavenger,
    AIType.BANDIT: Bandit,
}
