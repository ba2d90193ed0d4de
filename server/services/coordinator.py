"""
Move coordinator: optimistic read-validate-commit around the state machine.

For each submitted move:
    1. load the game (and with it the version read)
    2. run apply_move() on it
    3. commit the result only if the stored version is unchanged

A lost race (ConcurrencyError) restarts the cycle from a fresh read. The state
machine is pure, so a retry cannot apply a move twice. Rejected moves are
deterministic for a given state and are returned, never retried.
"""

import asyncio
import logging
from typing import Optional

from config import GameRules, config
from models.events import move_applied
from moves import Move, MoveResult
from state_machine import apply_move
from stores.game_store import ConcurrencyError, GameStore

logger = logging.getLogger(__name__)


class GameNotFoundError(Exception):
    """Raised when a move targets a game that does not exist."""
    pass


class GameUnavailableError(Exception):
    """Raised when a move kept conflicting with other writers and was given up."""
    pass


class MoveCoordinator:
    """
    Applies moves to stored games with compare-and-swap retries.

    Attributes:
        store: Game store to read from and commit to.
        rules: Rules passed to the state machine.
        max_retries: Attempts before giving up on a contended game.
        retry_delay: Base backoff between attempts, in seconds.
    """

    def __init__(
        self,
        store: GameStore,
        rules: Optional[GameRules] = None,
        max_retries: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ):
        self.store = store
        self.rules = rules or config.rules
        self.max_retries = max_retries if max_retries is not None else config.MOVE_MAX_RETRIES
        delay_ms = retry_delay_ms if retry_delay_ms is not None else config.MOVE_RETRY_DELAY_MS
        self.retry_delay = delay_ms / 1000

    async def submit(self, game_id: str, move: Move) -> MoveResult:
        """
        Apply a move to a stored game.

        Args:
            game_id: Game to apply the move to.
            move: The move.

        Returns:
            The accepted result (new game committed) or the rejection.

        Raises:
            GameNotFoundError: If the game does not exist.
            GameUnavailableError: If every attempt lost a race.
        """
        for attempt in range(1, self.max_retries + 1):
            game = await self.store.load(game_id)
            if game is None:
                raise GameNotFoundError(f"Game {game_id} does not exist")

            result = apply_move(game, move, self.rules)
            if not result.ok:
                logger.info(
                    f"Rejected {move.action_type} by {move.player_id} in {game_id}: "
                    f"{result.error.value}"
                )
                return result

            try:
                await self.store.commit(
                    result.game,
                    expected_version=game.version,
                    event=move_applied(result.game, move),
                )
            except ConcurrencyError as e:
                logger.warning(
                    f"Conflict applying {move.action_type} to {game_id} "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * attempt)
                continue

            logger.info(
                f"Applied {move.action_type} by {move.player_id} in {game_id} "
                f"(version {result.game.version})"
            )
            if result.game.winner is not None:
                logger.info(f"Game {game_id} won by {result.game.winner}")
            return result

        logger.error(f"Gave up on {move.action_type} in {game_id} after {self.max_retries} conflicts")
        raise GameUnavailableError(f"Game {game_id} is busy, try again")
