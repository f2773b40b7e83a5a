# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Sleep hub entry point.

Starts the FastAPI server with uvicorn.

Usage:
    python -m sleephub.main
    python -m sleephub.main --host 0.0.0.0 --port 8080
"""

import argparse
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

import uvicorn

from sleephub import __version__
from sleephub.config import Settings, get_settings


def setup_logging(settings: Settings, level: Optional[str] = None) -> None:
    """Configure console and optional rotating file logging.

    Args:
        settings: Hub settings
        level: Overrides settings.server.log_level
    """
    level_name = (level or settings.server.log_level).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (if configured)
    if settings.logging.file:
        log_dir = os.path.dirname(settings.logging.file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            settings.logging.file,
            maxBytes=settings.logging.max_size_mb * 1024 * 1024,
            backupCount=settings.logging.backup_count,
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def main():
    """Main entry point for the sleep hub."""
    parser = argparse.ArgumentParser(
        description="Sleep Hub - sleep-cycle alarm and dimmer coordination server"
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind to (default: from settings)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind to (default: from settings)",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from settings)",
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings, args.log_level)
    logger = logging.getLogger(__name__)

    # Override with CLI args if provided
    host = args.host or settings.server.host
    port = args.port or settings.server.port
    log_level = (args.log_level or settings.server.log_level).lower()

    logger.info("=" * 60)
    logger.info("Sleep Hub")
    logger.info(f"Sleep-cycle alarm and dimmer hub v{__version__}")
    logger.info("=" * 60)
    logger.info(f"Starting server on {host}:{port}")

    uvicorn.run(
        "sleephub.api.server:create_app",
        factory=True,
        host=host,
        port=port,
        reload=args.reload,
        log_level=log_level,
    )


if __name__ == "__main__":
    main()
