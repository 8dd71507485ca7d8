"""Turn service: load, resolve, save.

Wraps the pure turn engine with the concerns around it: storage, AI orders,
one-at-a-time resolution per game, and a timeout. A turn that fails or
times out leaves the stored snapshot exactly as it was.
"""

from __future__ import annotations

import logging
import random
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any

from tribes.ai import prepare_ai_actions
from tribes.engine.orchestrator import TurnError, TurnPhase, TurnResult, resolve_turn
from tribes.storage import GameStateRepository, get_turn_timeout

logger = logging.getLogger(__name__)


class GameNotFoundError(LookupError):
    """No stored game has the requested ID."""


class TurnService:
    """Resolves turns for stored games.

    Turns for the same game are serialized by a per-game lock; different
    games may resolve concurrently on the worker pool.
    """

    def __init__(
        self,
        repository: GameStateRepository,
        timeout: float | None = None,
        max_workers: int = 4,
    ):
        """Initialize the service.

        Args:
            repository: Where games are loaded from and saved to
            timeout: Seconds before a resolution is abandoned; defaults to
                TRIBES_TURN_TIMEOUT
            max_workers: Size of the resolution worker pool
        """
        self.repository = repository
        self.timeout = timeout if timeout is not None else get_turn_timeout()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="turn")
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, game_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(game_id, threading.Lock())

    def advance(
        self,
        game_id: str,
        submitted_actions: dict[str, list[Any]] | None = None,
        include_ai: bool = True,
    ) -> TurnResult:
        """Resolve one turn of a stored game and save it on success.

        Args:
            game_id: Stored game to advance
            submitted_actions: Player orders per tribe id
            include_ai: Generate orders for AI tribes that have none

        Returns:
            TurnResult from the engine, or a failed result on timeout

        Raises:
            GameNotFoundError: If the game does not exist
        """
        with self._lock_for(game_id):
            state = self.repository.load_game(game_id)
            if state is None:
                raise GameNotFoundError(f"Game not found: {game_id}")

            orders = dict(submitted_actions or {})
            if include_ai:
                ai_rng = random.Random(f"{state.rng_seed}:{state.turn}:ai")
                for tribe_id, actions in prepare_ai_actions(state, ai_rng).items():
                    orders.setdefault(tribe_id, actions)

            future = self._executor.submit(resolve_turn, state, orders)
            try:
                result = future.result(timeout=self.timeout)
            except FutureTimeout:
                future.cancel()
                error = TurnError(f"Turn {state.turn} of {game_id} exceeded {self.timeout}s", TurnPhase.IDLE)
                logger.error(f"ALERT: {error}; stored state left unchanged")
                return TurnResult(success=False, state=state, error=error, phase=TurnPhase.IDLE)

            if not result.success:
                logger.error(f"ALERT: turn {state.turn} of {game_id} failed during {result.phase.value}: {result.error}")
                return result

            self.repository.save_game(game_id, result.state)
            logger.info(f"Game {game_id} advanced to turn {result.state.turn}")
            return result

    def close(self) -> None:
        """Shut down the worker pool."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "TurnService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
