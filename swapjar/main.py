from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api import debug, health, price, quote, stellar
from .api.deps import get_bridge_config, get_orchestrator, get_status_monitor
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Fail at startup on a bad secret seed or network name, not on first payout
    config = get_bridge_config()
    orchestrator = get_orchestrator()
    get_status_monitor()
    logger.info(
        "swapjar_started",
        network=config.network,
        horizon=config.horizon_url,
        payout_mode="live" if orchestrator.can_execute else "simulated",
        bridge_account=orchestrator.ledger.public_key if orchestrator.ledger else None,
    )
    yield
    logger.info("swapjar_stopped")


# Create FastAPI app
app = FastAPI(
    title="SwapJar API",
    description="Cross-chain tip jar: EVM tips paid out on Stellar",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(stellar.router, tags=["Stellar"])
app.include_router(quote.router, tags=["Quotes"])
app.include_router(price.router, tags=["Prices"])
app.include_router(debug.router, tags=["Debug"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "SwapJar API",
        "version": __version__,
        "description": "Cross-chain tip jar: EVM tips paid out on Stellar",
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "swapjar.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
