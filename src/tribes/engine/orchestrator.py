"""Turn orchestrator.

`resolve_turn` is the single entry point that advances a game by one turn.
It works on a deep copy of the state and only hands the copy back once every
phase has completed and the state invariants hold. Any failure along the way
returns the caller's state untouched together with the error.

Phase sequence:
1. CLONING             deep-copy state, derive the turn's random generator
2. RESOLVING_JOURNEYS  advance in-flight journeys, fire arrivals
3. EXECUTING_ACTIONS   trade responses, then each submitted tribe's orders
                       in roster order
4. RESOLVING_DIPLOMACY expire offers, run trade agreements
5. UPKEEP              research, income, food, timers; prune empty garrisons
6. COMPUTING_RESULTS   history record, reset per-turn fields, turn += 1
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError

from tribes.engine.context import TurnContext, prune_abandoned
from tribes.engine.diplomacy import find_asymmetric_relations, process_diplomacy
from tribes.engine.executors import execute_action
from tribes.engine.journeys import advance_journeys, respond_to_trade
from tribes.engine.upkeep import apply_upkeep
from tribes.models.actions import ActionType, parse_action
from tribes.models.state import (
    ActionResult,
    GameState,
    Tribe,
    TribeHistoryRecord,
    TurnHistoryRecord,
)
from tribes.parameters import MAX_MORALE, SCORE_WEIGHTS

logger = logging.getLogger(__name__)


class TurnPhase(Enum):
    """Phase of turn resolution, reported on failure."""

    IDLE = "idle"
    CLONING = "cloning"
    RESOLVING_JOURNEYS = "resolving_journeys"
    EXECUTING_ACTIONS = "executing_actions"
    RESOLVING_DIPLOMACY = "resolving_diplomacy"
    UPKEEP = "upkeep"
    COMPUTING_RESULTS = "computing_results"
    COMMITTED = "committed"


class TurnError(Exception):
    """A turn could not be resolved; the previous state stands."""

    def __init__(self, message: str, phase: TurnPhase = TurnPhase.IDLE):
        super().__init__(message)
        self.phase = phase


class InvariantViolation(TurnError):
    """The working state broke an invariant after a phase."""

    def __init__(self, problems: list[str], phase: TurnPhase):
        super().__init__(f"Invariant violated after {phase.value}: {'; '.join(problems)}", phase)
        self.problems = problems


@dataclass
class TurnResult:
    """Outcome of resolve_turn.

    Attributes:
        success: True if the turn committed
        state: The next state on success, the unchanged input state on failure
        results: Outcome messages per tribe id (empty on failure)
        error: The failure, if any
        phase: Last phase reached
    """

    success: bool
    state: GameState
    results: dict[str, list[ActionResult]] = field(default_factory=dict)
    error: Optional[TurnError] = None
    phase: TurnPhase = TurnPhase.COMMITTED


def resolve_turn(
    state: GameState,
    submitted_actions: dict[str, list[Any]] | None = None,
    seed: int | str | None = None,
) -> TurnResult:
    """Resolve one full turn.

    Args:
        state: Current committed state; never mutated
        submitted_actions: Optional orders per tribe id, as action models or
            raw dicts. A tribe listed here counts as having submitted, even
            with an empty list. Tribes not listed keep whatever `actions` and
            `turn_submitted` the state already carries.
        seed: Overrides the per-turn seed derived from `state.rng_seed`

    Returns:
        TurnResult with the next state, or the input state and an error
    """
    phase = TurnPhase.CLONING
    logger.info(f"Resolving turn {state.turn} for {len(state.tribes)} tribes")
    try:
        working = state.model_copy(deep=True)
        rng = random.Random(seed if seed is not None else f"{state.rng_seed}:{state.turn}")
        ctx = TurnContext(state=working, rng=rng)
        _apply_submissions(ctx, submitted_actions or {})

        phase = TurnPhase.RESOLVING_JOURNEYS
        advance_journeys(ctx)
        check_invariants(working, phase)

        phase = TurnPhase.EXECUTING_ACTIONS
        for tribe in list(working.tribes):
            if not tribe.turn_submitted:
                continue
            for response in tribe.journey_responses:
                respond_to_trade(ctx, tribe, response.journey_id, response.response == "accept")
            for action in tribe.actions:
                execute_action(ctx, tribe, action)
        check_invariants(working, phase)

        phase = TurnPhase.RESOLVING_DIPLOMACY
        process_diplomacy(ctx)
        check_invariants(working, phase)

        phase = TurnPhase.UPKEEP
        apply_upkeep(ctx)
        for tribe in working.tribes:
            for key in prune_abandoned(tribe):
                ctx.report(tribe.id, ActionType.UPKEEP, f"Your garrison at {key} was abandoned.",
                           success=False, location=key)
        check_invariants(working, phase)

        phase = TurnPhase.COMPUTING_RESULTS
        working.history.append(build_history_record(working))
        for tribe in working.tribes:
            tribe.actions = []
            tribe.turn_submitted = False
            tribe.journey_responses = []
            tribe.last_turn_results = ctx.results.get(tribe.id, [])
        working.turn += 1
        check_invariants(working, phase)
    except TurnError as e:
        logger.error(f"Turn {state.turn} aborted during {e.phase.value}: {e}")
        return TurnResult(success=False, state=state, error=e, phase=e.phase)
    except Exception as e:
        logger.exception(f"Turn {state.turn} aborted during {phase.value}")
        error = TurnError(f"{type(e).__name__}: {e}", phase)
        error.__cause__ = e
        return TurnResult(success=False, state=state, error=error, phase=phase)

    logger.info(f"Turn {state.turn} committed; now turn {working.turn}")
    return TurnResult(success=True, state=working, results=ctx.results)


def _apply_submissions(ctx: TurnContext, submitted: dict[str, list[Any]]) -> None:
    for tribe_id, actions in submitted.items():
        tribe = ctx.tribe(tribe_id)
        if tribe is None:
            logger.warning(f"Ignoring actions for unknown tribe {tribe_id}")
            continue
        parsed = []
        for index, raw in enumerate(actions, start=1):
            try:
                action = parse_action(raw)
                if action.id is None:
                    action = action.model_copy(update={"id": f"{tribe.id}-t{ctx.turn}-{index}"})
                parsed.append(action)
            except ValidationError as e:
                kind = raw.get("action_type", "Unknown") if isinstance(raw, dict) else "Unknown"
                ctx.report(tribe.id, kind, f"Malformed action ignored: {e.error_count()} invalid fields.",
                           success=False)
        tribe.actions = parsed
        tribe.turn_submitted = True


# =============================================================================
# Invariants & history
# =============================================================================


def check_invariants(state: GameState, phase: TurnPhase) -> None:
    """Raise InvariantViolation if the working state is corrupt."""
    problems = []
    for tribe in state.tribes:
        res = tribe.global_resources
        if res.food < 0 or res.scrap < 0:
            problems.append(f"{tribe.id} has negative stores (food={res.food}, scrap={res.scrap})")
        if not 0 <= res.morale <= MAX_MORALE:
            problems.append(f"{tribe.id} morale {res.morale} out of range")
        for key, garrison in tribe.garrisons.items():
            if garrison.troops < 0 or garrison.weapons < 0:
                problems.append(f"{tribe.id} garrison {key} has negative troops or weapons")
    for journey in state.journeys:
        if journey.force.troops < 0 or journey.force.weapons < 0 or journey.arrival_turn < 0:
            problems.append(f"journey {journey.id} has negative values")
    for a, b in find_asymmetric_relations(state.tribes):
        problems.append(f"diplomacy between {a} and {b} is asymmetric")
    if problems:
        raise InvariantViolation(problems, phase)


def tribe_score(tribe: Tribe) -> float:
    """Overall strength used for history ranking."""
    return (
        tribe.total_troops() * SCORE_WEIGHTS["troops"]
        + tribe.total_weapons() * SCORE_WEIGHTS["weapons"]
        + len(tribe.garrisons) * SCORE_WEIGHTS["garrisons"]
        + len(tribe.completed_techs) * SCORE_WEIGHTS["techs"]
        + tribe.total_chiefs() * SCORE_WEIGHTS["chiefs"]
    )


def build_history_record(state: GameState) -> TurnHistoryRecord:
    scored = [(tribe, tribe_score(tribe)) for tribe in state.tribes]
    order = sorted(range(len(scored)), key=lambda i: -scored[i][1])
    ranks = {scored[i][0].id: rank for rank, i in enumerate(order, start=1)}
    return TurnHistoryRecord(
        turn=state.turn,
        tribe_records=[
            TribeHistoryRecord(
                tribe_id=tribe.id,
                score=score,
                troops=tribe.total_troops(),
                garrisons=len(tribe.garrisons),
                chiefs=tribe.total_chiefs(),
                rank=ranks[tribe.id],
            )
            for tribe, score in scored
        ],
    )
