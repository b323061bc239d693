"""Main entry point - runs the API server."""

import logging

import uvicorn

from simpledex.api.app import create_app
from simpledex.config import get_settings

logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Configure root logging."""
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def main() -> None:
    """Start the API server."""
    settings = get_settings()
    configure_logging(settings.debug)

    logger.info("Starting simpledex...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Config: {settings.get_safe_dict()}")
    if settings.dry_run:
        logger.warning("DRY_RUN enabled - swaps run against a simulated ledger")

    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
