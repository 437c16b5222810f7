"""Main application entry point."""

import asyncio
import logging
from contextlib import asynccontextmanager

# Configure logging FIRST, before any other imports
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)

# Reduce noise from third-party libraries
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("asyncio").setLevel(logging.WARNING)

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from smc_core.protocols import SignalRepository as SignalRepositoryProtocol
from smc_core.protocols import TickFeed
from smc_core.scorer import SignalScorer
from smc_app.analysis_config import load_analysis_config
from smc_app.api import ConnectionManager, router, websocket_endpoint
from smc_app.config import Settings, get_settings
from smc_app.services import (
    InProcessCandleFeed,
    InProcessTickFeed,
    SignalService,
    SignalTracker,
)
from smc_app.storage import InMemorySignalRepository, SignalRepository, init_database

logger = logging.getLogger(__name__)


async def _periodic_generation(service: SignalService, settings: Settings):
    """Background task generating a signal per configured symbol each round."""
    while True:
        try:
            await asyncio.sleep(settings.auto_generate_interval)
            signals = await service.generate_for_symbols(
                settings.symbols,
                user_id=settings.default_user_id,
                pause=settings.auto_generate_pause,
            )
            logger.info(f"Auto-generated {len(signals)} signals")
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.warning(f"Auto-generation error: {e}")


def create_app(
    settings: Settings | None = None,
    repository: SignalRepositoryProtocol | None = None,
    tick_feed: TickFeed | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to environment)
        repository: Optional signal repository; overrides the configured store
        tick_feed: Optional live tick source; defaults to an in-process feed
            fed by POST /api/ticks
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        cfg = settings or get_settings()
        logger.info("Starting SMC signal engine...")

        database = None
        repo = repository
        if repo is None:
            if cfg.use_memory_store:
                repo = InMemorySignalRepository()
                logger.info("Using in-memory signal store")
            else:
                database = await init_database(cfg.database_url, echo=cfg.debug)
                repo = SignalRepository(database)
                logger.info("Database initialized")

        analysis = load_analysis_config(cfg.analysis_config_path)
        scorer = SignalScorer(analysis.detectors, analysis.scoring)
        candle_feed = InProcessCandleFeed(max_size=cfg.candle_buffer_size)
        ticks = tick_feed if tick_feed is not None else InProcessTickFeed()
        tracker = SignalTracker(
            repo,
            tick_feed=ticks,
            retry_attempts=cfg.persist_retry_attempts,
            retry_base_delay=cfg.persist_retry_base_delay,
            retry_max_delay=cfg.persist_retry_max_delay,
        )
        service = SignalService(scorer, repo, tracker, candle_feed=candle_feed)
        manager = ConnectionManager()

        # Push channel to viewers
        service.on_signal(manager.send_signal)
        tracker.on_notification(manager.send_notification)

        try:
            await tracker.load_signals(cfg.default_user_id)
            await tracker.start()
        except Exception as e:
            logger.error(f"Startup failed: {e}")
            if database is not None:
                await database.close()
            raise

        app.state.settings = cfg
        app.state.repository = repo
        app.state.tracker = tracker
        app.state.service = service
        app.state.candle_feed = candle_feed
        app.state.tick_feed = ticks
        app.state.manager = manager

        generation_task = None
        if cfg.auto_generate:
            generation_task = asyncio.create_task(_periodic_generation(service, cfg))
            logger.info(
                f"Auto-generation every {cfg.auto_generate_interval}s "
                f"for {', '.join(cfg.symbols)}"
            )

        yield

        logger.info("Shutting down...")
        if generation_task:
            generation_task.cancel()
            try:
                await generation_task
            except asyncio.CancelledError:
                pass
        await tracker.stop()
        if database is not None:
            await database.close()
            logger.info("Database connections closed")
        logger.info("Shutdown complete")

    app = FastAPI(
        title="SMC Signal Engine",
        description="Smart Money Concepts signal generation and tracking",
        version="0.1.0",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router, prefix="/api")
    app.websocket("/ws")(websocket_endpoint)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "SMC Signal Engine",
            "version": "0.1.0",
            "docs": "/docs",
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


def main():
    """Run the application."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "smc_app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
