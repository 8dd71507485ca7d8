"""Game state models for the Tribes turn engine.

GameState is the root aggregate handed to the turn orchestrator. It is a
plain pydantic tree, so a snapshot is just `state.model_dump(mode="json")`
and an isolated working copy is `state.model_copy(deep=True)`.

Invariants the engine maintains after every resolved turn:
- troops, weapons, food and scrap are never negative
- morale stays within [0, 100]
- diplomacy is symmetric: A's status toward B equals B's toward A
- explored hexes only grow
- history records are appended once per turn and never rewritten
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from tribes.models.actions import (
    ActionType,
    GameAction,
    Payload,
    RationLevel,
    ResourceType,
)
from tribes.models.hexmap import HexData
from tribes.parameters import (
    INITIAL_FOOD,
    INITIAL_MORALE,
    INITIAL_SCRAP,
    MAX_MORALE,
)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value to the specified range."""
    return max(min_val, min(max_val, value))


# =============================================================================
# Tribe building blocks
# =============================================================================


class TribeStats(BaseModel):
    """Leadership attributes shared by tribes and chiefs."""

    charisma: int = Field(default=5, ge=0)
    intelligence: int = Field(default=5, ge=0)
    leadership: int = Field(default=5, ge=0)
    strength: int = Field(default=5, ge=0)


class Chief(BaseModel):
    """A named leader who travels with troops."""

    name: str
    description: str = ""
    stats: TribeStats = Field(default_factory=TribeStats)


class Garrison(BaseModel):
    """A tribe's troops, weapons and chiefs stationed at one hex.

    Attributes:
        troops: Fighting men present
        weapons: Weapons stockpiled here
        chiefs: Chiefs stationed here
        poisoned_troops: Troops weakened by poisoned supplies
        poisoned_until_turn: Poison wears off at the start of this turn
    """

    troops: int = Field(default=0, ge=0)
    weapons: int = Field(default=0, ge=0)
    chiefs: list[Chief] = Field(default_factory=list)
    poisoned_troops: int = Field(default=0, ge=0)
    poisoned_until_turn: int | None = None

    def is_abandoned(self) -> bool:
        """A garrison with no troops and no chiefs no longer holds its hex."""
        return self.troops == 0 and not self.chiefs

    def take_chiefs(self, names: list[str]) -> list[Chief]:
        """Remove and return the named chiefs that are present."""
        taken = [c for c in self.chiefs if c.name in names]
        self.chiefs = [c for c in self.chiefs if c.name not in names]
        return taken


class GlobalResources(BaseModel):
    """Tribe-wide stores."""

    food: int = Field(default=INITIAL_FOOD, ge=0)
    scrap: int = Field(default=INITIAL_SCRAP, ge=0)
    morale: int = Field(default=INITIAL_MORALE, ge=0, le=MAX_MORALE)

    @field_validator("morale", mode="before")
    @classmethod
    def clamp_morale(cls, v: Any) -> int:
        """Clamp morale into [0, 100]."""
        return int(clamp(int(v), 0, MAX_MORALE))


class ResearchProject(BaseModel):
    """A technology being researched at one garrison."""

    tech_id: str
    progress: float = Field(default=0.0, ge=0.0)
    assigned_troops: int = Field(..., ge=1)
    location: str


class InjuredChief(BaseModel):
    chief: Chief
    return_turn: int
    from_hex: str


class PrisonerChief(BaseModel):
    chief: Chief
    from_tribe_id: str
    captured_on_turn: int


class JourneyResponse(BaseModel):
    """A tribe's standing answer to a trade caravan waiting at its base."""

    journey_id: str
    response: Literal["accept", "reject"]


class DiplomaticStatus(str, Enum):
    WAR = "War"
    NEUTRAL = "Neutral"
    ALLIANCE = "Alliance"


class DiplomaticRelation(BaseModel):
    status: DiplomaticStatus = DiplomaticStatus.NEUTRAL
    truce_until_turn: int | None = None


class AIType(str, Enum):
    """AI personality archetypes."""

    WANDERER = "Wanderer"
    AGGRESSIVE = "Aggressive"
    DEFENSIVE = "Defensive"
    EXPANSIONIST = "Expansionist"
    TRADER = "Trader"
    SCAVENGER = "Scavenger"
    BANDIT = "Bandit"


class ActionResult(BaseModel):
    """Outcome of one action or engine event, as shown to the tribe.

    Attributes:
        action_id: ID of the submitted action, or a generated event ID
        action_type: Action kind, or a result-only tag such as Upkeep
        message: Human-readable outcome
        success: False when the action was rejected or failed
        data: Structured deltas for history and UIs
    """

    action_id: str
    action_type: str
    message: str
    success: bool = True
    data: dict[str, Any] = Field(default_factory=dict)


class Tribe(BaseModel):
    """One player- or AI-controlled tribe."""

    id: str
    player_id: str = ""
    player_name: str = ""
    tribe_name: str = ""
    is_ai: bool = False
    ai_type: AIType | None = None
    stats: TribeStats = Field(default_factory=TribeStats)
    global_resources: GlobalResources = Field(default_factory=GlobalResources)
    garrisons: dict[str, Garrison] = Field(default_factory=dict)
    location: str
    turn_submitted: bool = False
    actions: list[GameAction] = Field(default_factory=list)
    last_turn_results: list[ActionResult] = Field(default_factory=list)
    explored_hexes: list[str] = Field(default_factory=list)
    ration_level: RationLevel = RationLevel.NORMAL
    completed_techs: list[str] = Field(default_factory=list)
    assets: list[str] = Field(default_factory=list)
    current_research: list[ResearchProject] = Field(default_factory=list)
    journey_responses: list[JourneyResponse] = Field(default_factory=list)
    diplomacy: dict[str, DiplomaticRelation] = Field(default_factory=dict)
    injured_chiefs: list[InjuredChief] = Field(default_factory=list)
    prisoners: list[PrisonerChief] = Field(default_factory=list)

    @property
    def name(self) -> str:
        return self.tribe_name or self.id

    def total_troops(self) -> int:
        return sum(g.troops for g in self.garrisons.values())

    def total_weapons(self) -> int:
        return sum(g.weapons for g in self.garrisons.values())

    def total_chiefs(self) -> int:
        return sum(len(g.chiefs) for g in self.garrisons.values())

    def relation_to(self, other_id: str) -> DiplomaticStatus:
        relation = self.diplomacy.get(other_id)
        return relation.status if relation else DiplomaticStatus.NEUTRAL

    def reveal(self, hexes: set[str] | list[str]) -> int:
        """Add hexes to the explored set; returns how many were new."""
        known = set(self.explored_hexes)
        new = set(hexes) - known
        if new:
            self.explored_hexes = sorted(known | new)
        return len(new)


# =============================================================================
# Journeys
# =============================================================================


class JourneyType(str, Enum):
    MOVE = "Move"
    ATTACK = "Attack"
    SCAVENGE = "Scavenge"
    TRADE = "Trade"
    RETURN = "Return"
    SCOUT = "Scout"
    BUILD_OUTPOST = "Build Outpost"


class JourneyStatus(str, Enum):
    EN_ROUTE = "en_route"
    AWAITING_RESPONSE = "awaiting_response"
    RETURNING = "returning"


class Force(BaseModel):
    troops: int = Field(default=0, ge=0)
    weapons: int = Field(default=0, ge=0)
    chiefs: list[Chief] = Field(default_factory=list)


class TradeOffer(BaseModel):
    """What a trade caravan asks for in exchange for its payload."""

    request: Payload = Field(default_factory=Payload)
    from_tribe_name: str = ""


class Journey(BaseModel):
    """A force or goods payload in transit between hexes.

    Attributes:
        id: Stable identifier (deterministic per turn)
        owner_tribe_id: Tribe that dispatched it
        type: What happens on arrival
        origin: Hex the journey left from
        destination: Hex it is heading to
        force: Troops, weapons and chiefs travelling
        payload: Goods carried
        arrival_turn: Turns remaining until arrival
        status: en_route, awaiting_response or returning
        response_deadline: Turn on which an unanswered trade offer lapses
        scavenge_type: Resource sought by a scavenging party
        trade_offer: Terms of a trade caravan
        target_tribe_id: Tribe a trade caravan is addressed to
    """

    id: str
    owner_tribe_id: str
    type: JourneyType
    origin: str
    destination: str
    force: Force = Field(default_factory=Force)
    payload: Payload = Field(default_factory=Payload)
    arrival_turn: int = Field(..., ge=0)
    status: JourneyStatus = JourneyStatus.EN_ROUTE
    response_deadline: int | None = None
    scavenge_type: ResourceType | None = None
    trade_offer: TradeOffer | None = None
    target_tribe_id: str | None = None


# =============================================================================
# Diplomacy
# =============================================================================


class ProposalKind(str, Enum):
    ALLIANCE = "Alliance"
    PEACE = "Peace"
    TRADE_AGREEMENT = "Trade Agreement"


class TradeTerms(BaseModel):
    from_tribe_gives: Payload = Field(default_factory=Payload)
    to_tribe_gives: Payload = Field(default_factory=Payload)


class DiplomaticProposal(BaseModel):
    id: str
    from_tribe_id: str
    to_tribe_id: str
    kind: ProposalKind
    from_tribe_name: str = ""
    status_change_to: DiplomaticStatus | None = None
    created_turn: int
    expires_on_turn: int
    reparations: Payload | None = None
    trade_terms: TradeTerms | None = None
    duration: int | None = None


class DiplomaticMessage(BaseModel):
    id: str
    from_tribe_id: str
    to_tribe_id: str
    from_tribe_name: str = ""
    subject: str = ""
    message: str = ""
    created_turn: int
    expires_on_turn: int


class PrisonerExchangeProposal(BaseModel):
    id: str
    from_tribe_id: str
    to_tribe_id: str
    offered_chief_names: list[str] = Field(default_factory=list)
    requested_chief_names: list[str] = Field(default_factory=list)
    expires_on_turn: int


class TradeAgreement(BaseModel):
    """A recurring transfer between two tribes for a number of turns."""

    id: str
    from_tribe_id: str
    to_tribe_id: str
    terms: TradeTerms
    duration: int = Field(..., ge=0)
    created_turn: int
    status: Literal["active", "expired", "cancelled"] = "active"


# =============================================================================
# History & root aggregate
# =============================================================================


class TribeHistoryRecord(BaseModel):
    tribe_id: str
    score: float
    troops: int
    garrisons: int
    chiefs: int
    rank: int


class TurnHistoryRecord(BaseModel):
    turn: int
    tribe_records: list[TribeHistoryRecord] = Field(default_factory=list)


class GameState(BaseModel):
    """Complete state of one game.

    Attributes:
        turn: Logical clock, starts at 1
        map_data: Static hex grid
        tribes: Tribes in stable processing order
        journeys: In-flight journeys
        diplomatic_proposals: Open alliance/peace/agreement offers
        diplomatic_messages: Plain messages with expiry
        prisoner_exchange_proposals: Open prisoner swaps
        trade_agreements: Active recurring transfers
        starting_locations: Unclaimed spawn hexes
        history: One record per resolved turn
        rng_seed: Base seed; each turn derives its own generator from it
    """

    turn: int = Field(default=1, ge=1)
    map_data: list[HexData] = Field(default_factory=list)
    tribes: list[Tribe] = Field(default_factory=list)
    journeys: list[Journey] = Field(default_factory=list)
    diplomatic_proposals: list[DiplomaticProposal] = Field(default_factory=list)
    diplomatic_messages: list[DiplomaticMessage] = Field(default_factory=list)
    prisoner_exchange_proposals: list[PrisonerExchangeProposal] = Field(default_factory=list)
    trade_agreements: list[TradeAgreement] = Field(default_factory=list)
    starting_locations: list[str] = Field(default_factory=list)
    history: list[TurnHistoryRecord] = Field(default_factory=list)
    rng_seed: int = 0

    def get_tribe(self, tribe_id: str) -> Tribe | None:
        for tribe in self.tribes:
            if tribe.id == tribe_id:
                return tribe
        return None

    def get_hex(self, key: str) -> HexData | None:
        for hex_data in self.map_data:
            if hex_data.key == key:
                return hex_data
        return None

    def hex_owner(self, key: str) -> Tribe | None:
        """Tribe holding a garrison on the hex, if any."""
        for tribe in self.tribes:
            if key in tribe.garrisons:
                return tribe
        return None


__all__ = [
    "ActionResult",
    "ActionType",
    "AIType",
    "Chief",
    "DiplomaticMessage",
    "DiplomaticProposal",
    "DiplomaticRelation",
    "DiplomaticStatus",
    "Force",
    "GameState",
    "Garrison",
    "GlobalResources",
    "InjuredChief",
    "Journey",
    "JourneyResponse",
    "JourneyStatus",
    "JourneyType",
    "PrisonerChief",
    "PrisonerExchangeProposal",
    "ProposalKind",
    "ResearchProject",
    "TradeAgreement",
    "TradeOffer",
    "TradeTerms",
    "Tribe",
    "TribeHistoryRecord",
    "TribeStats",
    "TurnHistoryRecord",
    "clamp",
]
