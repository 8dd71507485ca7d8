"""Data models for the Tribes turn engine."""

from tribes.models.actions import (
    ActionType,
    AttackAction,
    BuildOutpostAction,
    BuildWeaponsAction,
    DeclareWarAction,
    DefendAction,
    ExchangePrisonersAction,
    GameAction,
    MoveAction,
    Payload,
    ProposeAllianceAction,
    ProposeTradeAgreementAction,
    RationLevel,
    RecruitAction,
    RejectProposalAction,
    ReleasePrisonerAction,
    ResourceType,
    RespondToPrisonerExchangeAction,
    RespondToTradeAction,
    RestAction,
    SabotageAction,
    SabotageType,
    ScavengeAction,
    ScoutAction,
    SendDiplomaticMessageAction,
    SetRationsAction,
    StartResearchAction,
    SueForPeaceAction,
    TradeAction,
    AcceptProposalAction,
    parse_action,
)
from tribes.models.hexmap import POI, HexData, POIRarity, POIType, TerrainType
from tribes.models.state import (
    ActionResult,
    AIType,
    Chief,
    DiplomaticMessage,
    DiplomaticProposal,
    DiplomaticRelation,
    DiplomaticStatus,
    Force,
    GameState,
    Garrison,
    GlobalResources,
    InjuredChief,
    Journey,
    JourneyResponse,
    JourneyStatus,
    JourneyType,
    PrisonerChief,
    PrisonerExchangeProposal,
    ProposalKind,
    ResearchProject,
    TradeAgreement,
    TradeOffer,
    TradeTerms,
    Tribe,
    TribeHistoryRecord,
    TribeStats,
    TurnHistoryRecord,
    clamp,
)

__all__ = [
    # Actions
    "ActionType",
    "GameAction",
    "parse_action",
    "Payload",
    "RationLevel",
    "ResourceType",
    "SabotageType",
    "AcceptProposalAction",
    "AttackAction",
    "BuildOutpostAction",
    "BuildWeaponsAction",
    "DeclareWarAction",
    "DefendAction",
    "ExchangePrisonersAction",
    "MoveAction",
    "ProposeAllianceAction",
    "ProposeTradeAgreementAction",
    "RecruitAction",
    "RejectProposalAction",
    "ReleasePrisonerAction",
    "RespondToPrisonerExchangeAction",
    "RespondToTradeAction",
    "RestAction",
    "SabotageAction",
    "ScavengeAction",
    "ScoutAction",
    "SendDiplomaticMessageAction",
    "SetRationsAction",
    "StartResearchAction",
    "SueForPeaceAction",
    "TradeAction",
    # Map
    "HexData",
    "POI",
    "POIRarity",
    "POIType",
    "TerrainType",
    # State
    "ActionResult",
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
