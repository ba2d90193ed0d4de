"""
Game lifecycle service: creating and starting games.

Ids are short random strings; the store's create() rejects a taken id and a
new one is drawn. Starting a game goes through the same compare-and-swap
commit as moves, so two concurrent starts cannot both deal.
"""

import asyncio
import logging
from typing import Optional

from config import GameRules, config
from game import Game
from lobby import LobbyError, deal_game, generate_game_id, new_game
from models.events import game_created, game_started
from services.coordinator import GameNotFoundError, GameUnavailableError
from stores.game_store import ConcurrencyError, GameExistsError, GameStore

logger = logging.getLogger(__name__)


class LobbyService:
    """
    Creates games under unique short ids and deals them.

    Starting retries lost races the way MoveCoordinator does: max_retries
    attempts with a linear backoff of retry_delay * attempt seconds.
    """

    def __init__(
        self,
        store: GameStore,
        rules: Optional[GameRules] = None,
        id_length: Optional[int] = None,
        max_attempts: int = 100,
        max_retries: Optional[int] = None,
        retry_delay_ms: Optional[int] = None,
    ):
        self.store = store
        self.rules = rules or config.rules
        self.id_length = id_length or config.GAME_ID_LENGTH
        self.max_attempts = max_attempts
        self.max_retries = max_retries if max_retries is not None else config.MOVE_MAX_RETRIES
        delay_ms = retry_delay_ms if retry_delay_ms is not None else config.MOVE_RETRY_DELAY_MS
        self.retry_delay = delay_ms / 1000

    async def create_game(
        self,
        host_id: str,
        player_ids: list[str],
        start: bool = False,
    ) -> Game:
        """
        Create a game in the lobby, optionally starting it straight away.

        Args:
            host_id: Player creating the game.
            player_ids: Seated players, in turn order.
            start: Deal immediately instead of waiting for start_game().

        Returns:
            The stored game.

        Raises:
            LobbyError: If the player list is invalid.
        """
        for _ in range(self.max_attempts):
            game = new_game(generate_game_id(self.id_length), host_id, player_ids, self.rules)
            try:
                await self.store.create(game, event=game_created(game))
            except GameExistsError:
                continue
            logger.info(f"Game created with ID: {game.game_id} ({len(player_ids)} players)")
            if start:
                return await self.start_game(game.game_id)
            return game

        raise RuntimeError("Could not generate unique game id")

    async def start_game(self, game_id: str, seed: Optional[int] = None) -> Game:
        """
        Deal a lobby game and put it in progress.

        Args:
            game_id: Game to start.
            seed: Optional shuffle seed.

        Returns:
            The started game.

        Raises:
            GameNotFoundError: If the game does not exist.
            LobbyError: If the game already started.
            GameUnavailableError: If every attempt lost a race.
        """
        for attempt in range(1, self.max_retries + 1):
            game = await self.store.load(game_id)
            if game is None:
                raise GameNotFoundError(f"Game {game_id} does not exist")

            started = deal_game(game, self.rules, seed=seed)
            try:
                await self.store.commit(started, expected_version=game.version, event=game_started(started))
            except ConcurrencyError as e:
                logger.warning(f"Conflict starting {game_id} (attempt {attempt}/{self.max_retries}): {e}")
                if attempt < self.max_retries:
                    await asyncio.sleep(self.retry_delay * attempt)
                continue

            logger.info(f"Game {game_id} started, {len(started.draw_pile)} cards in draw pile")
            return started

        logger.error(f"Gave up starting {game_id} after {self.max_retries} conflicts")
        raise GameUnavailableError(f"Game {game_id} is busy, try again")


__all__ = ["LobbyService", "LobbyError"]
