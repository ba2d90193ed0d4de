"""FastAPI server for Monopoly Deal games."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from config import config
from logging_config import setup_logging
from middleware.request_id import RequestIDMiddleware
from routers.games import router as games_router
from routers.health import router as health_router
from services.coordinator import MoveCoordinator
from services.lobby_service import LobbyService
from stores.game_store import GameStore, MemoryGameStore
from stores.postgres_store import PostgresGameStore
from stores.redis_store import RedisGameStore

# Configure logging based on environment
setup_logging(
    level=config.LOG_LEVEL,
    environment=config.ENVIRONMENT,
)
logger = logging.getLogger(__name__)


async def open_store() -> GameStore:
    """
    Connect the configured game store.

    PostgreSQL wins over Redis when both are configured; with neither, games
    live in process memory and are lost on restart.
    """
    if config.POSTGRES_URL:
        store = await PostgresGameStore.create_from_url(config.POSTGRES_URL)
        logger.info("Using PostgreSQL game store")
        return store
    if config.REDIS_URL:
        store = await RedisGameStore.create_from_url(config.REDIS_URL, ttl_hours=config.GAME_TTL_HOURS)
        logger.info("Using Redis game store")
        return store
    logger.warning("REDIS_URL/POSTGRES_URL not configured - games are kept in memory only")
    return MemoryGameStore()


def create_app(store: Optional[GameStore] = None) -> FastAPI:
    """
    Build the application.

    Args:
        store: Game store to use; connected from config at startup if omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or await open_store()
        app.state.store = app_store
        app.state.coordinator = MoveCoordinator(app_store)
        app.state.lobby = LobbyService(app_store)
        logger.info(f"Monopoly Deal server started (environment={config.ENVIRONMENT})")

        yield

        logger.info("Shutdown initiated...")
        await app_store.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Monopoly Deal",
        debug=config.DEBUG,
        version="1.0.0",
        lifespan=lifespan,
    )
    app.add_middleware(RequestIDMiddleware)
    app.include_router(games_router)
    app.include_router(health_router)
    return app


app = create_app()


def run():
    """Run the server using uvicorn."""
    import uvicorn

    logger.info(f"Starting Monopoly Deal server on {config.HOST}:{config.PORT}")
    logger.info(f"Debug mode: {config.DEBUG}")

    uvicorn.run(
        "main:app",
        host=config.HOST,
        port=config.PORT,
        reload=config.DEBUG,
        log_level=config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
