"""Journey scheduler.

Journeys advance once per turn, before any action executes, so forces
arriving from earlier turns are in place before new orders refer to them.

State machine:
    en_route           arrival_turn counts down; at 0 the arrival fires and
                       the journey leaves the list (trade caravans re-enter
                       as awaiting_response)
    awaiting_response  inert until the target answers or response_deadline
                       passes, then the caravan turns back
    returning          counts down like en_route, merging into the home
                       garrison on arrival
"""

from __future__ import annotations

import logging

from tribes.engine.arrivals import resolve_arrival
from tribes.engine.context import TurnContext, nearest_garrison
from tribes.models.actions import ActionType, Payload
from tribes.models.state import Journey, JourneyStatus, JourneyType, Tribe
from tribes.parameters import FAST_TRACK_THRESHOLD

logger = logging.getLogger(__name__)


def dispatch_journey(ctx: TurnContext, journey: Journey) -> bool:
    """Put a freshly created journey on the map.

    Journeys short enough to complete within the current turn resolve on the
    spot; everything else is queued for the scheduler. Trade caravans are
    always queued.

    Returns:
        True if the journey resolved immediately
    """
    if journey.type != JourneyType.TRADE and journey.arrival_turn <= FAST_TRACK_THRESHOLD:
        journey.arrival_turn = 0
        resolve_arrival(ctx, journey)
        return True
    ctx.add_journey(journey)
    return False


def advance_journeys(ctx: TurnContext) -> None:
    """Advance every in-flight journey by one turn.

    Journeys created while this pass runs (return legs) are not advanced
    until the next turn.
    """
    for journey in list(ctx.state.journeys):
        owner = ctx.tribe(journey.owner_tribe_id)
        if owner is None:
            logger.warning(f"Removing orphaned journey {journey.id} of missing tribe {journey.owner_tribe_id}")
            ctx.remove_journey(journey.id)
            continue

        if journey.status == JourneyStatus.AWAITING_RESPONSE:
            _check_waiting_caravan(ctx, owner, journey)
            continue

        journey.arrival_turn = max(0, journey.arrival_turn - 1)
        if journey.arrival_turn == 0:
            ctx.remove_journey(journey.id)
            resolve_arrival(ctx, journey)


def _check_waiting_caravan(ctx: TurnContext, owner: Tribe, journey: Journey) -> None:
    target = ctx.tribe(journey.target_tribe_id)
    if target is None or not target.garrisons:
        _turn_caravan_back(ctx, owner, journey, journey.payload)
        ctx.report(
            owner.id, ActionType.TRADE,
            "Your caravan's trading partner has vanished. It is heading home with its goods.",
            success=False, journey_id=journey.id,
        )
        return

    if journey.response_deadline is not None and ctx.turn >= journey.response_deadline:
        _turn_caravan_back(ctx, owner, journey, journey.payload)
        ctx.report(
            owner.id, ActionType.TRADE,
            f"{target.name} never answered your trade offer. The caravan is returning with its goods.",
            success=False, journey_id=journey.id,
        )
        ctx.report(
            target.id, ActionType.TRADE,
            f"The caravan from {owner.name} gave up waiting and left.",
            journey_id=journey.id,
        )


def _turn_caravan_back(ctx: TurnContext, owner: Tribe, journey: Journey, payload: Payload) -> None:
    ctx.remove_journey(journey.id)
    ctx.send_home(owner, journey.force, journey.destination, journey.origin,
                  payload=payload, source_id=journey.id)


def respond_to_trade(ctx: TurnContext, responder: Tribe, journey_id: str, accept: bool, action_id: str | None = None) -> bool:
    """Accept or reject a caravan waiting at the responder's base.

    Accepting pays the requested goods from the responder (food and scrap from
    stores, weapons from the garrison the caravan is visiting) and takes the
    caravan's payload. An acceptance that cannot be paid for counts as a
    rejection. Either way the caravan heads home, carrying the requested
    goods or its original payload.

    Returns:
        True if the trade went through
    """
    journey = ctx.journey(journey_id)
    if (
        journey is None
        or journey.status != JourneyStatus.AWAITING_RESPONSE
        or journey.target_tribe_id != responder.id
    ):
        ctx.report(
            responder.id, ActionType.RESPOND_TO_TRADE,
            f"No caravan {journey_id} is waiting for your answer.",
            success=False, action_id=action_id,
        )
        return False

    owner = ctx.tribe(journey.owner_tribe_id)
    if owner is None:
        ctx.remove_journey(journey.id)
        ctx.report(responder.id, ActionType.RESPOND_TO_TRADE, "The caravan's owners are gone; it disbands.",
                   success=False, action_id=action_id)
        return False

    request = journey.trade_offer.request if journey.trade_offer else Payload()
    if accept:
        stock = responder.global_resources
        pay_from = journey.destination if journey.destination in responder.garrisons else nearest_garrison(responder, journey.destination)
        weapons_available = responder.garrisons[pay_from].weapons if pay_from else 0
        if stock.food < request.food or stock.scrap < request.scrap or weapons_available < request.weapons:
            ctx.report(
                responder.id, ActionType.RESPOND_TO_TRADE,
                f"You could not afford {request.describe()}; the offer from {owner.name} is declined.",
                success=False, action_id=action_id, journey_id=journey.id,
            )
            accept = False
        else:
            stock.food -= request.food
            stock.scrap -= request.scrap
            if request.weapons:
                responder.garrisons[pay_from].weapons -= request.weapons
            stock.food += journey.payload.food
            stock.scrap += journey.payload.scrap
            if journey.payload.weapons and pay_from:
                responder.garrisons[pay_from].weapons += journey.payload.weapons

            _turn_caravan_back(ctx, owner, journey, request)
            ctx.report(
                responder.id, ActionType.RESPOND_TO_TRADE,
                f"You traded {request.describe()} to {owner.name} for {journey.payload.describe()}.",
                action_id=action_id, journey_id=journey.id,
            )
            ctx.report(
                owner.id, ActionType.TRADE,
                f"{responder.name} accepted your trade. The caravan is bringing home {request.describe()}.",
                journey_id=journey.id,
            )
            return True

    _turn_caravan_back(ctx, owner, journey, journey.payload)
    ctx.report(
        responder.id, ActionType.RESPOND_TO_TRADE,
        f"You turned away the caravan from {owner.name}.",
        action_id=action_id, journey_id=journey.id,
    )
    ctx.report(
        owner.id, ActionType.TRADE,
        f"{responder.name} rejected your trade. The caravan is returning with its goods.",
        success=False, journey_id=journey.id,
    )
    return False
