"""Tests for the journey scheduler and trade caravans.

Tests cover:
- Queued journeys counting down and arriving
- Return journeys merging forces and payloads
- Orphaned journeys of removed tribes
- Trade dispatch, waiting at the target, deadlines
- Accepting, rejecting and unaffordable acceptances
"""

from tribes.engine.executors import execute_action
from tribes.engine.journeys import advance_journeys, respond_to_trade
from tribes.models.actions import MoveAction, Payload, TradeAction
from tribes.models.state import Force, Journey, JourneyStatus, JourneyType

HOME_A = "050.050"
HOME_B = "046.050"


def send_caravan(ctx, offer=None, request=None, troops=3):
    alpha = ctx.tribe("alpha")
    execute_action(ctx, alpha, TradeAction(
        start_location=HOME_A,
        target_tribe_id="beta",
        troops=troops,
        offer=offer or Payload(food=20),
        request=request or Payload(scrap=10),
    ))
    return ctx.state.journeys[-1] if ctx.state.journeys else None


class TestScheduler:
    """Tests for advance_journeys."""

    def test_queued_move_arrives_after_countdown(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, MoveAction(start_location=HOME_A, destination="054.050", troops=5))

        advance_journeys(ctx)
        assert ctx.state.journeys[0].arrival_turn == 1
        assert "054.050" not in alpha.garrisons

        advance_journeys(ctx)
        assert ctx.state.journeys == []
        assert alpha.garrisons["054.050"].troops == 5

    def test_return_merges_force_and_payload(self, ctx):
        alpha = ctx.tribe("alpha")
        ctx.add_journey(Journey(
            id="return-1",
            owner_tribe_id="alpha",
            type=JourneyType.RETURN,
            origin="054.050",
            destination=HOME_A,
            force=Force(troops=4, weapons=1),
            payload=Payload(food=12, scrap=3, weapons=2),
            arrival_turn=1,
            status=JourneyStatus.RETURNING,
        ))
        advance_journeys(ctx)
        assert alpha.garrisons[HOME_A].troops == 24
        assert alpha.garrisons[HOME_A].weapons == 13
        assert alpha.global_resources.food == 112
        assert alpha.global_resources.scrap == 23

    def test_return_to_lost_home_diverts(self, ctx):
        alpha = ctx.tribe("alpha")
        alpha.garrisons["052.050"] = alpha.garrisons.pop(HOME_A)
        ctx.add_journey(Journey(
            id="return-2",
            owner_tribe_id="alpha",
            type=JourneyType.RETURN,
            origin="054.050",
            destination=HOME_A,
            force=Force(troops=4),
            arrival_turn=1,
        ))
        advance_journeys(ctx)
        # The home hex is empty, so the party re-occupies it
        assert alpha.garrisons[HOME_A].troops == 4

    def test_orphaned_journey_removed(self, ctx):
        ctx.add_journey(Journey(
            id="ghost", owner_tribe_id="nobody", type=JourneyType.MOVE,
            origin=HOME_A, destination="054.050", arrival_turn=2,
        ))
        advance_journeys(ctx)
        assert ctx.journey("ghost") is None

    def test_journeys_created_during_pass_wait(self, ctx):
        alpha = ctx.tribe("alpha")
        ctx.add_journey(Journey(
            id="scout-1", owner_tribe_id="alpha", type=JourneyType.SCOUT,
            origin=HOME_A, destination="054.050", force=Force(troops=2), arrival_turn=1,
        ))
        advance_journeys(ctx)
        returning = ctx.journey("return-scout-1")
        assert returning is not None
        assert returning.arrival_turn == 2
        assert alpha.garrisons[HOME_A].troops == 20


class TestTradeCaravans:
    """Tests for trade dispatch and responses."""

    def test_dispatch_deducts_offer_and_sets_deadline(self, ctx):
        journey = send_caravan(ctx)
        alpha = ctx.tribe("alpha")
        assert journey.type == JourneyType.TRADE
        assert journey.destination == HOME_B
        assert journey.arrival_turn == 2
        # turn 5 + 2 travel + 3 to answer
        assert journey.response_deadline == 10
        assert alpha.global_resources.food == 80
        assert alpha.garrisons[HOME_A].troops == 17

    def test_trade_with_self_rejected(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, TradeAction(
            start_location=HOME_A, target_tribe_id="alpha", troops=1, offer=Payload(food=5),
        ))
        assert not ctx.results["alpha"][-1].success

    def test_unaffordable_offer_rejected(self, ctx):
        send_caravan(ctx, offer=Payload(food=500))
        assert not ctx.results["alpha"][-1].success
        assert ctx.state.journeys == []
        assert ctx.tribe("alpha").global_resources.food == 100

    def test_empty_trade_rejected(self, ctx):
        alpha = ctx.tribe("alpha")
        execute_action(ctx, alpha, TradeAction(start_location=HOME_A, target_tribe_id="beta", troops=1))
        assert "must offer or request" in ctx.results["alpha"][-1].message

    def test_caravan_waits_at_target(self, ctx):
        journey = send_caravan(ctx)
        advance_journeys(ctx)
        advance_journeys(ctx)
        waiting = ctx.journey(journey.id)
        assert waiting.status == JourneyStatus.AWAITING_RESPONSE
        assert any(r.data.get("journey_id") == journey.id for r in ctx.results["beta"])

    def test_accept_swaps_goods(self, ctx):
        journey = send_caravan(ctx)
        advance_journeys(ctx)
        advance_journeys(ctx)
        beta = ctx.tribe("beta")

        assert respond_to_trade(ctx, beta, journey.id, accept=True)
        assert beta.global_resources.food == 120
        assert beta.global_resources.scrap == 10
        assert ctx.journey(journey.id) is None
        returning = ctx.journey(f"return-{journey.id}")
        assert returning.payload == Payload(scrap=10)
        assert returning.force.troops == 3

    def test_reject_sends_goods_back(self, ctx):
        journey = send_caravan(ctx)
        advance_journeys(ctx)
        advance_journeys(ctx)
        beta = ctx.tribe("beta")

        assert not respond_to_trade(ctx, beta, journey.id, accept=False)
        assert beta.global_resources.food == 100
        assert ctx.journey(f"return-{journey.id}").payload == Payload(food=20)

    def test_unaffordable_accept_counts_as_reject(self, ctx):
        journey = send_caravan(ctx, request=Payload(scrap=50))
        advance_journeys(ctx)
        advance_journeys(ctx)
        beta = ctx.tribe("beta")

        assert not respond_to_trade(ctx, beta, journey.id, accept=True)
        assert beta.global_resources.scrap == 20
        assert ctx.journey(f"return-{journey.id}").payload == Payload(food=20)

    def test_only_target_may_answer(self, ctx):
        journey = send_caravan(ctx)
        advance_journeys(ctx)
        advance_journeys(ctx)
        alpha = ctx.tribe("alpha")
        assert not respond_to_trade(ctx, alpha, journey.id, accept=True)
        assert ctx.journey(journey.id).status == JourneyStatus.AWAITING_RESPONSE

    def test_unanswered_caravan_turns_back_at_deadline(self, ctx):
        journey = send_caravan(ctx)
        for turn in (6, 7, 8, 9):
            ctx.state.turn = turn
            advance_journeys(ctx)
            assert ctx.journey(journey.id) is not None
        ctx.state.turn = 10
        advance_journeys(ctx)
        assert ctx.journey(journey.id) is None
        assert ctx.journey(f"return-{journey.id}").payload == Payload(food=20)
