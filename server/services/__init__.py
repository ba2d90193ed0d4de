"""Services package for Monopoly Deal game orchestration."""

from .coordinator import MoveCoordinator, GameNotFoundError, GameUnavailableError
from .lobby_service import LobbyService

__all__ = [
    "MoveCoordinator",
    "GameNotFoundError",
    "GameUnavailableError",
    "LobbyService",
]
