"""LPTrack - Main application entry point."""

import uvicorn
from fastapi import FastAPI

from lptrack.api.routes import health, pnl
from lptrack.config import get_settings
from lptrack.config.logging import configure_logging, get_logger

log = get_logger(__name__)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()
    configure_logging()

    application = FastAPI(
        title=settings.app_name,
        description="Liquidity-provision and swap PnL reconstruction",
        version=settings.app_version,
    )

    application.include_router(health.router, prefix="/api")
    application.include_router(pnl.router, prefix="/api")

    log.info("app_created", chain=settings.chain, debug=settings.debug)
    return application


def main() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "lptrack.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
