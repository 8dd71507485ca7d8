"""Diplomacy actions and the per-turn agreement manager.

Relations between two tribes are always written through `set_relation`,
which updates both sides in one step. The orchestrator additionally checks
symmetry after every phase and aborts the turn if it is ever broken.
"""

from __future__ import annotations

import logging

from tribes.engine.context import TurnContext, nearest_garrison
from tribes.models.actions import (
    AcceptProposalAction,
    ActionType,
    DeclareWarAction,
    ExchangePrisonersAction,
    Payload,
    ProposeAllianceAction,
    ProposeTradeAgreementAction,
    RejectProposalAction,
    ReleasePrisonerAction,
    RespondToPrisonerExchangeAction,
    SendDiplomaticMessageAction,
    SueForPeaceAction,
)
from tribes.models.state import (
    DiplomaticMessage,
    DiplomaticProposal,
    DiplomaticRelation,
    DiplomaticStatus,
    PrisonerExchangeProposal,
    ProposalKind,
    TradeAgreement,
    TradeTerms,
    Tribe,
)
from tribes.parameters import (
    DEFAULT_AGREEMENT_DURATION,
    MESSAGE_EXPIRY_TURNS,
    PROPOSAL_EXPIRY_TURNS,
    TRUCE_DURATION,
)

logger = logging.getLogger(__name__)


def set_relation(
    a: Tribe, b: Tribe, status: DiplomaticStatus, truce_until_turn: int | None = None
) -> None:
    """Set the relation between two tribes on both sides at once."""
    a.diplomacy[b.id] = DiplomaticRelation(status=status, truce_until_turn=truce_until_turn)
    b.diplomacy[a.id] = DiplomaticRelation(status=status, truce_until_turn=truce_until_turn)


def find_asymmetric_relations(tribes: list[Tribe]) -> list[tuple[str, str]]:
    """Pairs (a, b) whose statuses toward each other differ."""
    broken = []
    for i, a in enumerate(tribes):
        for b in tribes[i + 1:]:
            if a.relation_to(b.id) != b.relation_to(a.id):
                broken.append((a.id, b.id))
    return broken


def _target(ctx: TurnContext, tribe: Tribe, action, target_id: str) -> Tribe | None:
    target = ctx.tribe(target_id)
    if target is None or target.id == tribe.id:
        ctx.fail(tribe.id, action, f"There is no other tribe with id {target_id}.")
        return None
    return target


def _has_pending(ctx: TurnContext, a: str, b: str, kind: ProposalKind) -> bool:
    return any(
        p.kind == kind and {p.from_tribe_id, p.to_tribe_id} == {a, b}
        for p in ctx.state.diplomatic_proposals
    )


def _can_afford(tribe: Tribe, payload: Payload) -> bool:
    weapons = tribe.garrisons[tribe.location].weapons if tribe.location in tribe.garrisons else 0
    return (
        tribe.global_resources.food >= payload.food
        and tribe.global_resources.scrap >= payload.scrap
        and weapons >= payload.weapons
    )


def _transfer(giver: Tribe, receiver: Tribe, payload: Payload) -> None:
    """Move goods; weapons go home base to home base. Caller checks affordability."""
    giver.global_resources.food -= payload.food
    giver.global_resources.scrap -= payload.scrap
    receiver.global_resources.food += payload.food
    receiver.global_resources.scrap += payload.scrap
    if payload.weapons:
        giver.garrisons[giver.location].weapons -= payload.weapons
        dest = receiver.location if receiver.location in receiver.garrisons else nearest_garrison(receiver, receiver.location)
        if dest is not None:
            receiver.garrisons[dest].weapons += payload.weapons


# =============================================================================
# Proposal actions
# =============================================================================


def propose_alliance(ctx: TurnContext, tribe: Tribe, action: ProposeAllianceAction) -> None:
    target = _target(ctx, tribe, action, action.target_tribe_id)
    if target is None:
        return
    status = tribe.relation_to(target.id)
    if status == DiplomaticStatus.WAR:
        ctx.fail(tribe.id, action, f"You cannot propose an alliance to {target.name} while at war. Sue for peace first.")
        return
    if status == DiplomaticStatus.ALLIANCE:
        ctx.fail(tribe.id, action, f"You are already allied with {target.name}.")
        return
    if _has_pending(ctx, tribe.id, target.id, ProposalKind.ALLIANCE):
        ctx.fail(tribe.id, action, f"An alliance proposal with {target.name} is already pending.")
        return

    proposal = DiplomaticProposal(
        id=ctx.next_id("proposal"),
        from_tribe_id=tribe.id,
        to_tribe_id=target.id,
        kind=ProposalKind.ALLIANCE,
        from_tribe_name=tribe.name,
        status_change_to=DiplomaticStatus.ALLIANCE,
        created_turn=ctx.turn,
        expires_on_turn=ctx.turn + PROPOSAL_EXPIRY_TURNS,
    )
    ctx.state.diplomatic_proposals.append(proposal)
    ctx.report(tribe.id, action.action_type, f"You proposed an alliance to {target.name}.",
               action_id=action.id, proposal_id=proposal.id)
    ctx.report(target.id, ActionType.DIPLOMACY,
               f"{tribe.name} proposes an alliance (expires turn {proposal.expires_on_turn}).",
               proposal_id=proposal.id)


def sue_for_peace(ctx: TurnContext, tribe: Tribe, action: SueForPeaceAction) -> None:
    target = _target(ctx, tribe, action, action.target_tribe_id)
    if target is None:
        return
    if tribe.relation_to(target.id) != DiplomaticStatus.WAR:
        ctx.fail(tribe.id, action, f"You are not at war with {target.name}.")
        return
    if _has_pending(ctx, tribe.id, target.id, ProposalKind.PEACE):
        ctx.fail(tribe.id, action, f"A peace proposal with {target.name} is already pending.")
        return

    proposal = DiplomaticProposal(
        id=ctx.next_id("proposal"),
        from_tribe_id=tribe.id,
        to_tribe_id=target.id,
        kind=ProposalKind.PEACE,
        from_tribe_name=tribe.name,
        status_change_to=DiplomaticStatus.NEUTRAL,
        created_turn=ctx.turn,
        expires_on_turn=ctx.turn + PROPOSAL_EXPIRY_TURNS,
        reparations=action.reparations,
    )
    ctx.state.diplomatic_proposals.append(proposal)
    offer = "" if action.reparations.is_empty() else f" offering {action.reparations.describe()} in reparations"
    ctx.report(tribe.id, action.action_type, f"You sued {target.name} for peace{offer}.",
               action_id=action.id, proposal_id=proposal.id)
    ctx.report(target.id, ActionType.DIPLOMACY, f"{tribe.name} sues for peace{offer}.", proposal_id=proposal.id)


def propose_trade_agreement(ctx: TurnContext, tribe: Tribe, action: ProposeTradeAgreementAction) -> None:
    target = _target(ctx, tribe, action, action.target_tribe_id)
    if target is None:
        return
    if tribe.relation_to(target.id) == DiplomaticStatus.WAR:
        ctx.fail(tribe.id, action, f"{target.name} will not trade with an enemy.")
        return
    if action.offering.is_empty() and action.requesting.is_empty():
        ctx.fail(tribe.id, action, "A trade agreement must exchange something.")
        return

    proposal = DiplomaticProposal(
        id=ctx.next_id("proposal"),
        from_tribe_id=tribe.id,
        to_tribe_id=target.id,
        kind=ProposalKind.TRADE_AGREEMENT,
        from_tribe_name=tribe.name,
        created_turn=ctx.turn,
        expires_on_turn=ctx.turn + PROPOSAL_EXPIRY_TURNS,
        trade_terms=TradeTerms(
            from_tribe_gives=Payload(food=action.offering.food, scrap=action.offering.scrap),
            to_tribe_gives=Payload(food=action.requesting.food, scrap=action.requesting.scrap),
        ),
        duration=action.duration or DEFAULT_AGREEMENT_DURATION,
    )
    ctx.state.diplomatic_proposals.append(proposal)
    ctx.report(tribe.id, action.action_type, f"You proposed a trade agreement to {target.name}.",
               action_id=action.id, proposal_id=proposal.id)
    ctx.report(
        target.id, ActionType.DIPLOMACY,
        f"{tribe.name} proposes to give {proposal.trade_terms.from_tribe_gives.describe()} per turn "
        f"for {proposal.trade_terms.to_tribe_gives.describe()} over {proposal.duration} turns.",
        proposal_id=proposal.id,
    )


def declare_war(ctx: TurnContext, tribe: Tribe, action: DeclareWarAction) -> None:
    target = _target(ctx, tribe, action, action.target_tribe_id)
    if target is None:
        return
    relation = tribe.diplomacy.get(target.id)
    if relation and relation.status == DiplomaticStatus.WAR:
        ctx.fail(tribe.id, action, f"You are already at war with {target.name}.")
        return
    if relation and relation.truce_until_turn is not None and ctx.turn < relation.truce_until_turn:
        ctx.fail(tribe.id, action,
                 f"A truce with {target.name} holds until turn {relation.truce_until_turn}; war cannot be declared.")
        return

    set_relation(tribe, target, DiplomaticStatus.WAR)
    ctx.state.diplomatic_proposals = [
        p for p in ctx.state.diplomatic_proposals
        if not ({p.from_tribe_id, p.to_tribe_id} == {tribe.id, target.id} and p.kind != ProposalKind.PEACE)
    ]
    for agreement in ctx.state.trade_agreements:
        if agreement.status == "active" and {agreement.from_tribe_id, agreement.to_tribe_id} == {tribe.id, target.id}:
            agreement.status = "cancelled"
    logger.info(f"[turn {ctx.turn}] {tribe.id} declared war on {target.id}")
    ctx.report(tribe.id, action.action_type, f"You declared war on {target.name}!", action_id=action.id)
    ctx.report(target.id, ActionType.DIPLOMACY, f"{tribe.name} has declared war on you!", success=False)


def accept_proposal(ctx: TurnContext, tribe: Tribe, action: AcceptProposalAction) -> None:
    proposal = next((p for p in ctx.state.diplomatic_proposals if p.id == action.proposal_id), None)
    if proposal is None or proposal.to_tribe_id != tribe.id:
        ctx.fail(tribe.id, action, f"No proposal {action.proposal_id} is addressed to you.")
        return
    if ctx.turn > proposal.expires_on_turn:
        ctx.fail(tribe.id, action, "That proposal has expired.")
        return
    proposer = ctx.tribe(proposal.from_tribe_id)
    ctx.state.diplomatic_proposals.remove(proposal)
    if proposer is None:
        ctx.fail(tribe.id, action, "The proposing tribe no longer exists.")
        return

    if proposal.kind == ProposalKind.ALLIANCE:
        if tribe.relation_to(proposer.id) == DiplomaticStatus.WAR:
            ctx.fail(tribe.id, action, f"You went to war with {proposer.name}; the alliance offer is void.")
            return
        set_relation(tribe, proposer, DiplomaticStatus.ALLIANCE)
        message = f"You are now allied with {proposer.name}."
        notice = f"{tribe.name} accepted your alliance."
    elif proposal.kind == ProposalKind.PEACE:
        if tribe.relation_to(proposer.id) != DiplomaticStatus.WAR:
            ctx.fail(tribe.id, action, f"You are no longer at war with {proposer.name}.")
            return
        reparations = proposal.reparations or Payload()
        if not _can_afford(proposer, reparations):
            ctx.fail(tribe.id, action, f"{proposer.name} can no longer pay the promised reparations; the treaty is void.")
            ctx.report(proposer.id, ActionType.DIPLOMACY,
                       f"{tribe.name} accepted peace but you could not pay the reparations. The war goes on.",
                       success=False)
            return
        _transfer(proposer, tribe, reparations)
        truce = ctx.turn + TRUCE_DURATION
        set_relation(tribe, proposer, DiplomaticStatus.NEUTRAL, truce_until_turn=truce)
        message = f"Peace with {proposer.name}. A truce holds until turn {truce}."
        notice = f"{tribe.name} accepted peace. A truce holds until turn {truce}."
    else:
        if tribe.relation_to(proposer.id) == DiplomaticStatus.WAR:
            ctx.fail(tribe.id, action, f"You cannot sign a trade agreement with {proposer.name} while at war.")
            return
        agreement = TradeAgreement(
            id=ctx.next_id("agreement"),
            from_tribe_id=proposer.id,
            to_tribe_id=tribe.id,
            terms=proposal.trade_terms or TradeTerms(),
            duration=proposal.duration or DEFAULT_AGREEMENT_DURATION,
            created_turn=ctx.turn,
        )
        ctx.state.trade_agreements.append(agreement)
        message = f"Trade agreement with {proposer.name} signed for {agreement.duration} turns."
        notice = f"{tribe.name} signed your trade agreement."

    ctx.report(tribe.id, action.action_type, message, action_id=action.id, proposal_id=proposal.id)
    ctx.report(proposer.id, ActionType.DIPLOMACY, notice, proposal_id=proposal.id)


def reject_proposal(ctx: TurnContext, tribe: Tribe, action: RejectProposalAction) -> None:
    proposal = next((p for p in ctx.state.diplomatic_proposals if p.id == action.proposal_id), None)
    if proposal is None or proposal.to_tribe_id != tribe.id:
        ctx.fail(tribe.id, action, f"No proposal {action.proposal_id} is addressed to you.")
        return
    ctx.state.diplomatic_proposals.remove(proposal)
    ctx.report(tribe.id, action.action_type, f"You rejected the proposal from {proposal.from_tribe_name}.",
               action_id=action.id)
    ctx.report(proposal.from_tribe_id, ActionType.DIPLOMACY, f"{tribe.name} rejected your proposal.", success=False)


def send_diplomatic_message(ctx: TurnContext, tribe: Tribe, action: SendDiplomaticMessageAction) -> None:
    target = _target(ctx, tribe, action, action.target_tribe_id)
    if target is None:
        return
    message = DiplomaticMessage(
        id=ctx.next_id("message"),
        from_tribe_id=tribe.id,
        to_tribe_id=target.id,
        from_tribe_name=tribe.name,
        subject=action.subject,
        message=action.message,
        created_turn=ctx.turn,
        expires_on_turn=ctx.turn + MESSAGE_EXPIRY_TURNS,
    )
    ctx.state.diplomatic_messages.append(message)
    ctx.report(tribe.id, action.action_type, f"Message sent to {target.name}.", action_id=action.id)
    ctx.report(target.id, ActionType.DIPLOMACY, f"Message from {tribe.name}: {action.subject}", message_id=message.id)


# =============================================================================
# Prisoners
# =============================================================================


def _free_prisoner(ctx: TurnContext, holder: Tribe, name: str) -> bool:
    """Release a prisoner back to its own tribe's home (or nearest) garrison.

    A prisoner whose tribe holds no garrison has nowhere to go and stays with
    the holder.

    Returns:
        True if the prisoner was released
    """
    prisoner = next((p for p in holder.prisoners if p.chief.name == name), None)
    if prisoner is None:
        return False
    origin = ctx.tribe(prisoner.from_tribe_id)
    if origin is None or not origin.garrisons:
        ctx.report(holder.id, ActionType.DIPLOMACY,
                   f"{name} has no tribe left to return to and remains your prisoner.", success=False)
        return False
    holder.prisoners.remove(prisoner)
    dest = origin.location if origin.location in origin.garrisons else nearest_garrison(origin, origin.location)
    origin.garrisons[dest].chiefs.append(prisoner.chief)
    ctx.report(origin.id, ActionType.DIPLOMACY, f"{prisoner.chief.name} has been released by {holder.name} and rejoined you at {dest}.")
    return True


def release_prisoner(ctx: TurnContext, tribe: Tribe, action: ReleasePrisonerAction) -> None:
    if not any(p.chief.name == action.chief_name for p in tribe.prisoners):
        ctx.fail(tribe.id, action, f"You hold no prisoner named {action.chief_name}.")
        return
    if not _free_prisoner(ctx, tribe, action.chief_name):
        ctx.fail(tribe.id, action, f"{action.chief_name} could not be released.")
        return
    ctx.report(tribe.id, action.action_type, f"You released {action.chief_name}.", action_id=action.id)


def exchange_prisoners(ctx: TurnContext, tribe: Tribe, action: ExchangePrisonersAction) -> None:
    target = _target(ctx, tribe, action, action.target_tribe_id)
    if target is None:
        return
    held = {p.chief.name for p in tribe.prisoners}
    theirs = {p.chief.name for p in target.prisoners}
    missing = [n for n in action.offered_chief_names if n not in held]
    if missing:
        ctx.fail(tribe.id, action, f"You do not hold: {', '.join(missing)}.")
        return
    unknown = [n for n in action.requested_chief_names if n not in theirs]
    if unknown:
        ctx.fail(tribe.id, action, f"{target.name} does not hold: {', '.join(unknown)}.")
        return
    if not action.offered_chief_names and not action.requested_chief_names:
        ctx.fail(tribe.id, action, "An exchange needs at least one prisoner.")
        return

    proposal = PrisonerExchangeProposal(
        id=ctx.next_id("exchange"),
        from_tribe_id=tribe.id,
        to_tribe_id=target.id,
        offered_chief_names=list(action.offered_chief_names),
        requested_chief_names=list(action.requested_chief_names),
        expires_on_turn=ctx.turn + PROPOSAL_EXPIRY_TURNS,
    )
    ctx.state.prisoner_exchange_proposals.append(proposal)
    ctx.report(tribe.id, action.action_type, f"You offered {target.name} a prisoner exchange.",
               action_id=action.id, proposal_id=proposal.id)
    ctx.report(target.id, ActionType.DIPLOMACY, f"{tribe.name} proposes a prisoner exchange.", proposal_id=proposal.id)


def respond_to_prisoner_exchange(ctx: TurnContext, tribe: Tribe, action: RespondToPrisonerExchangeAction) -> None:
    proposal = next((p for p in ctx.state.prisoner_exchange_proposals if p.id == action.proposal_id), None)
    if proposal is None or proposal.to_tribe_id != tribe.id:
        ctx.fail(tribe.id, action, f"No prisoner exchange {action.proposal_id} is addressed to you.")
        return
    ctx.state.prisoner_exchange_proposals.remove(proposal)
    proposer = ctx.tribe(proposal.from_tribe_id)
    if proposer is None:
        ctx.fail(tribe.id, action, "The proposing tribe no longer exists.")
        return

    if not action.accept:
        ctx.report(tribe.id, action.action_type, f"You declined {proposer.name}'s prisoner exchange.", action_id=action.id)
        ctx.report(proposer.id, ActionType.DIPLOMACY, f"{tribe.name} declined your prisoner exchange.", success=False)
        return

    proposer_held = {p.chief.name for p in proposer.prisoners}
    own_held = {p.chief.name for p in tribe.prisoners}
    if not (set(proposal.offered_chief_names) <= proposer_held and set(proposal.requested_chief_names) <= own_held):
        ctx.fail(tribe.id, action, "The prisoners in that exchange are no longer held; the exchange is void.")
        return

    for name in proposal.offered_chief_names:
        _free_prisoner(ctx, proposer, name)
    for name in proposal.requested_chief_names:
        _free_prisoner(ctx, tribe, name)
    ctx.report(tribe.id, action.action_type, f"Prisoner exchange with {proposer.name} completed.", action_id=action.id)
    ctx.report(proposer.id, ActionType.DIPLOMACY, f"{tribe.name} accepted your prisoner exchange.")


# =============================================================================
# Per-turn manager
# =============================================================================


def process_diplomacy(ctx: TurnContext) -> None:
    """Expire stale offers and run trade agreements for this turn."""
    state = ctx.state
    turn = ctx.turn

    expired = [p for p in state.diplomatic_proposals if turn > p.expires_on_turn]
    if expired:
        logger.debug(f"[turn {turn}] Expiring {len(expired)} diplomatic proposals")
    state.diplomatic_proposals = [p for p in state.diplomatic_proposals if turn <= p.expires_on_turn]
    state.diplomatic_messages = [m for m in state.diplomatic_messages if turn <= m.expires_on_turn]
    state.prisoner_exchange_proposals = [p for p in state.prisoner_exchange_proposals if turn <= p.expires_on_turn]

    for agreement in state.trade_agreements:
        if agreement.status != "active":
            continue
        giver = ctx.tribe(agreement.from_tribe_id)
        taker = ctx.tribe(agreement.to_tribe_id)
        if giver is None or taker is None or giver.relation_to(taker.id) == DiplomaticStatus.WAR:
            agreement.status = "cancelled"
            continue

        out_terms = agreement.terms.from_tribe_gives
        in_terms = agreement.terms.to_tribe_gives
        if not (_can_afford(giver, out_terms) and _can_afford(taker, in_terms)):
            agreement.status = "cancelled"
            for tribe_id in (giver.id, taker.id):
                ctx.report(tribe_id, ActionType.DIPLOMACY,
                           f"The trade agreement between {giver.name} and {taker.name} collapsed: a side could not pay.",
                           success=False, agreement_id=agreement.id)
            continue

        _transfer(giver, taker, out_terms)
        _transfer(taker, giver, in_terms)
        agreement.duration -= 1
        ctx.report(giver.id, ActionType.DIPLOMACY,
                   f"Trade agreement: sent {out_terms.describe()} to {taker.name}, received {in_terms.describe()}.",
                   agreement_id=agreement.id)
        ctx.report(taker.id, ActionType.DIPLOMACY,
                   f"Trade agreement: received {out_terms.describe()} from {giver.name}, sent {in_terms.describe()}.",
                   agreement_id=agreement.id)
        if agreement.duration <= 0:
            agreement.status = "expired"

    state.trade_agreements = [a for a in state.trade_agreements if a.status == "active"]
