"""Action models for the Tribes turn engine.

Players (and AI strategies) submit a list of actions per turn. Each action
kind is its own pydantic model carrying only the fields it needs; the
`GameAction` union is discriminated on `action_type`, so a raw dict from the
transport layer parses straight into the right model:

    action = parse_action({"action_type": "Move", "start_location": "050.050",
                           "destination": "052.049", "troops": 5})

Executors dispatch on `ActionType`; every member except the result-only ones
has exactly one model and one executor.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator


class ActionType(str, Enum):
    """Kinds of player action, plus result-only tags."""

    MOVE = "Move"
    SCOUT = "Scout"
    SCAVENGE = "Scavenge"
    RECRUIT = "Recruit"
    ATTACK = "Attack"
    REST = "Rest"
    START_RESEARCH = "Start Research"
    BUILD_WEAPONS = "Build Weapons"
    BUILD_OUTPOST = "Build Outpost"
    TRADE = "Trade"
    DEFEND = "Defend"
    SET_RATIONS = "Set Rations"
    SABOTAGE = "Sabotage"
    RESPOND_TO_TRADE = "Respond to Trade"
    RELEASE_PRISONER = "Release Prisoner"
    EXCHANGE_PRISONERS = "Exchange Prisoners"
    RESPOND_TO_PRISONER_EXCHANGE = "Respond to Prisoner Exchange"
    PROPOSE_ALLIANCE = "Propose Alliance"
    SUE_FOR_PEACE = "Sue for Peace"
    DECLARE_WAR = "Declare War"
    ACCEPT_PROPOSAL = "Accept Proposal"
    REJECT_PROPOSAL = "Reject Proposal"
    PROPOSE_TRADE_AGREEMENT = "Propose Trade Agreement"
    SEND_DIPLOMATIC_MESSAGE = "Send Diplomatic Message"

    # Result-only tags, never submitted
    UPKEEP = "Upkeep"
    TECHNOLOGY = "Technology"
    ARRIVAL = "Arrival"
    DIPLOMACY = "Diplomacy"


RESULT_ONLY_TYPES = frozenset(
    {ActionType.UPKEEP, ActionType.TECHNOLOGY, ActionType.ARRIVAL, ActionType.DIPLOMACY}
)


class ResourceType(str, Enum):
    """Resource a scavenging party looks for."""

    FOOD = "Food"
    SCRAP = "Scrap"
    WEAPONS = "Weapons"


class RationLevel(str, Enum):
    """Food ration policy of a tribe."""

    HARD = "Hard"
    NORMAL = "Normal"
    GENEROUS = "Generous"


class SabotageType(str, Enum):
    """Covert operation kinds."""

    DESTROY_RESOURCES = "Destroy Resources"
    STEAL_RESOURCES = "Steal Resources"
    INTELLIGENCE_GATHERING = "Intelligence Gathering"
    STEAL_RESEARCH = "Steal Research"
    DESTROY_RESEARCH = "Destroy Research"
    SABOTAGE_OUTPOST = "Sabotage Outpost"
    POISON_SUPPLIES = "Poison Supplies"


class Payload(BaseModel):
    """Goods carried by a journey or exchanged in a deal."""

    food: int = Field(default=0, ge=0)
    scrap: int = Field(default=0, ge=0)
    weapons: int = Field(default=0, ge=0)

    def is_empty(self) -> bool:
        return self.food == 0 and self.scrap == 0 and self.weapons == 0

    def describe(self) -> str:
        parts = [f"{v} {k}" for k, v in (("food", self.food), ("scrap", self.scrap), ("weapons", self.weapons)) if v > 0]
        return ", ".join(parts) if parts else "nothing"


class _BaseAction(BaseModel):
    """Fields shared by every action."""

    # Assigned from tribe, turn and position when the orders are submitted
    id: str | None = None


class _ForceAction(_BaseAction):
    """An action that detaches a force from a garrison."""

    start_location: str
    troops: int = Field(..., ge=1)
    weapons: int = Field(default=0, ge=0)
    chiefs_to_move: list[str] = Field(default_factory=list)

    @field_validator("chiefs_to_move", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Accept null for an empty chief list."""
        return [] if v is None else v


class MoveAction(_ForceAction):
    action_type: Literal["Move"] = "Move"
    destination: str


class ScoutAction(_ForceAction):
    action_type: Literal["Scout"] = "Scout"
    destination: str


class ScavengeAction(_ForceAction):
    action_type: Literal["Scavenge"] = "Scavenge"
    target_location: str
    resource_type: ResourceType


class AttackAction(_ForceAction):
    action_type: Literal["Attack"] = "Attack"
    target_location: str


class BuildOutpostAction(_ForceAction):
    action_type: Literal["Build Outpost"] = "Build Outpost"
    target_location: str


class TradeAction(_ForceAction):
    """Send a caravan with goods to another tribe's home base.

    The offered food and scrap come from the tribe's stores and the offered
    weapons from the start garrison. The escort travels with the caravan.
    """

    action_type: Literal["Trade"] = "Trade"
    target_tribe_id: str
    offer: Payload = Field(default_factory=Payload)
    request: Payload = Field(default_factory=Payload)


class SabotageAction(_ForceAction):
    action_type: Literal["Sabotage"] = "Sabotage"
    target_tribe_id: str
    target_location: str
    sabotage_type: SabotageType
    resource_type: ResourceType | None = None
    research_tech_id: str | None = None


class RecruitAction(_BaseAction):
    action_type: Literal["Recruit"] = "Recruit"
    start_location: str
    food_offered: int = Field(..., ge=1)


class RestAction(_BaseAction):
    action_type: Literal["Rest"] = "Rest"
    start_location: str


class DefendAction(_BaseAction):
    action_type: Literal["Defend"] = "Defend"
    start_location: str
    troops: int = Field(default=0, ge=0)


class BuildWeaponsAction(_BaseAction):
    action_type: Literal["Build Weapons"] = "Build Weapons"
    start_location: str
    scrap: int = Field(..., ge=1)


class SetRationsAction(_BaseAction):
    action_type: Literal["Set Rations"] = "Set Rations"
    ration_level: RationLevel


class StartResearchAction(_BaseAction):
    action_type: Literal["Start Research"] = "Start Research"
    tech_id: str
    location: str
    assigned_troops: int = Field(..., ge=1)


class RespondToTradeAction(_BaseAction):
    action_type: Literal["Respond to Trade"] = "Respond to Trade"
    journey_id: str
    accept: bool


class ReleasePrisonerAction(_BaseAction):
    action_type: Literal["Release Prisoner"] = "Release Prisoner"
    chief_name: str


class ExchangePrisonersAction(_BaseAction):
    action_type: Literal["Exchange Prisoners"] = "Exchange Prisoners"
    target_tribe_id: str
    offered_chief_names: list[str] = Field(default_factory=list)
    requested_chief_names: list[str] = Field(default_factory=list)


class RespondToPrisonerExchangeAction(_BaseAction):
    action_type: Literal["Respond to Prisoner Exchange"] = "Respond to Prisoner Exchange"
    proposal_id: str
    accept: bool


class ProposeAllianceAction(_BaseAction):
    action_type: Literal["Propose Alliance"] = "Propose Alliance"
    target_tribe_id: str


class SueForPeaceAction(_BaseAction):
    action_type: Literal["Sue for Peace"] = "Sue for Peace"
    target_tribe_id: str
    reparations: Payload = Field(default_factory=Payload)


class DeclareWarAction(_BaseAction):
    action_type: Literal["Declare War"] = "Declare War"
    target_tribe_id: str


class AcceptProposalAction(_BaseAction):
    action_type: Literal["Accept Proposal"] = "Accept Proposal"
    proposal_id: str


class RejectProposalAction(_BaseAction):
    action_type: Literal["Reject Proposal"] = "Reject Proposal"
    proposal_id: str


class ProposeTradeAgreementAction(_BaseAction):
    """Offer a recurring per-turn exchange of food and scrap."""

    action_type: Literal["Propose Trade Agreement"] = "Propose Trade Agreement"
    target_tribe_id: str
    offering: Payload = Field(default_factory=Payload)
    requesting: Payload = Field(default_factory=Payload)
    duration: int | None = Field(default=None, ge=1)


class SendDiplomaticMessageAction(_BaseAction):
    action_type: Literal["Send Diplomatic Message"] = "Send Diplomatic Message"
    target_tribe_id: str
    subject: str = Field(default="", max_length=120)
    message: str = Field(default="", max_length=1000)


GameAction = Annotated[
    Union[
        MoveAction,
        ScoutAction,
        ScavengeAction,
        AttackAction,
        BuildOutpostAction,
        TradeAction,
        SabotageAction,
        RecruitAction,
        RestAction,
        DefendAction,
        BuildWeaponsAction,
        SetRationsAction,
        StartResearchAction,
        RespondToTradeAction,
        ReleasePrisonerAction,
        ExchangePrisonersAction,
        RespondToPrisonerExchangeAction,
        ProposeAllianceAction,
        SueForPeaceAction,
        DeclareWarAction,
        AcceptProposalAction,
        RejectProposalAction,
        ProposeTradeAgreementAction,
        SendDiplomaticMessageAction,
    ],
    Field(discriminator="action_type"),
]

_action_adapter: TypeAdapter = TypeAdapter(GameAction)


def parse_action(data: dict | BaseModel) -> GameAction:
    """Validate a raw action dict into its typed model.

    Args:
        data: Dict with an `action_type` key, or an already-built action

    Returns:
        The matching action model

    Raises:
        pydantic.ValidationError: If the type is unknown or fields are invalid
    """
    if isinstance(data, BaseModel):
        return data
    return _action_adapter.validate_python(data)
