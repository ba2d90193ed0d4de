"""
Game API router.

Endpoints:
- POST /api/games                   create a game (optionally started)
- POST /api/games/{game_id}/start   deal and start a lobby game
- POST /api/games/{game_id}/moves   submit a move
- POST /api/moves                   submit a move with the game id in the body
- GET  /api/games/{game_id}         a player's view of the game
- GET  /api/games/{game_id}/events  the game's event log

Services are created once at startup and read from app.state, so tests can
build an app around any store.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from game import InvariantViolation
from lobby import LobbyError
from logging_config import game_context
from moves import parse_move
from services.coordinator import GameNotFoundError, GameUnavailableError, MoveCoordinator
from services.lobby_service import LobbyService
from stores.game_store import GameStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["games"])


# -------------------------------------------------------------------------
# Dependencies
# -------------------------------------------------------------------------

def get_store(request: Request) -> GameStore:
    return request.app.state.store


def get_coordinator(request: Request) -> MoveCoordinator:
    return request.app.state.coordinator


def get_lobby(request: Request) -> LobbyService:
    return request.app.state.lobby


# -------------------------------------------------------------------------
# Request Models
# -------------------------------------------------------------------------

class CreateGameRequest(BaseModel):
    """Request to create a game."""
    hostId: str
    playerIds: list[str]
    start: bool = False


class StartGameRequest(BaseModel):
    """Request to start a game; the seed makes the deal reproducible."""
    seed: Optional[int] = None


class CardRef(BaseModel):
    """Reference to a card by id (other card fields are ignored)."""
    id: str


class MoveRequest(BaseModel):
    """A move as submitted by a client."""
    playerId: str
    actionType: str
    card: Optional[Union[CardRef, str]] = None
    cardId: Optional[str] = None
    placeAs: Optional[str] = None
    color: Optional[str] = None
    discards: list[str] = Field(default_factory=list)


class ApplyMoveRequest(BaseModel):
    """A move together with the game it targets."""
    gameId: str
    move: MoveRequest


# -------------------------------------------------------------------------
# Lifecycle Endpoints
# -------------------------------------------------------------------------

@router.post("/games")
async def create_game(body: CreateGameRequest, lobby: LobbyService = Depends(get_lobby)):
    """Create a game for the given players."""
    try:
        game = await lobby.create_game(body.hostId, body.playerIds, start=body.start)
    except LobbyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"gameId": game.game_id, "status": game.status.value}


@router.post("/games/{game_id}/start")
async def start_game(
    game_id: str,
    body: Optional[StartGameRequest] = None,
    lobby: LobbyService = Depends(get_lobby),
):
    """Deal the opening hands and start play."""
    seed = body.seed if body else None
    with game_context(game_id):
        try:
            game = await lobby.start_game(game_id, seed=seed)
        except GameNotFoundError:
            raise HTTPException(status_code=404, detail="Game not found")
        except LobbyError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except GameUnavailableError as e:
            raise HTTPException(status_code=503, detail=str(e))
    return {"gameId": game.game_id, "status": game.status.value}


# -------------------------------------------------------------------------
# Move Endpoints
# -------------------------------------------------------------------------

async def _submit(game_id: str, body: MoveRequest, coordinator: MoveCoordinator):
    move = parse_move(body.model_dump(exclude_none=True))

    with game_context(game_id, move.player_id):
        try:
            result = await coordinator.submit(game_id, move)
        except GameNotFoundError:
            raise HTTPException(status_code=404, detail="Game not found")
        except GameUnavailableError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except InvariantViolation as e:
            logger.error(f"Stored game {game_id} is inconsistent: {e}")
            raise HTTPException(status_code=500, detail="Game state is inconsistent")

    if not result.ok:
        return JSONResponse(
            status_code=409,
            content={"success": False, "error": result.error.value},
        )
    return {"success": True}


@router.post("/games/{game_id}/moves")
async def submit_move(
    game_id: str,
    body: MoveRequest,
    coordinator: MoveCoordinator = Depends(get_coordinator),
):
    """Validate and apply a move."""
    return await _submit(game_id, body, coordinator)


@router.post("/moves")
async def apply_move(body: ApplyMoveRequest, coordinator: MoveCoordinator = Depends(get_coordinator)):
    """Validate and apply a move, with the game id in the request body."""
    return await _submit(body.gameId, body.move, coordinator)


# -------------------------------------------------------------------------
# Read Endpoints
# -------------------------------------------------------------------------

@router.get("/games/{game_id}")
async def get_game(
    game_id: str,
    playerId: Optional[str] = None,
    store: GameStore = Depends(get_store),
):
    """Get a game as seen by one player (other hands hidden)."""
    game = await store.load(game_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return game.to_client_dict(playerId)


@router.get("/games/{game_id}/events")
async def get_game_events(
    game_id: str,
    from_sequence: int = 0,
    store: GameStore = Depends(get_store),
):
    """Get the game's event log."""
    if await store.load(game_id) is None:
        raise HTTPException(status_code=404, detail="Game not found")
    events = await store.get_events(game_id, from_sequence)
    return {"gameId": game_id, "events": [e.to_dict() for e in events]}
