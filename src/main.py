"""
Main entry point for the Dashboard Tabs API server.

This module initializes logging and the database, then serves the
FastAPI application with uvicorn.
"""

import argparse
import logging
import sys
import traceback

import uvicorn

from src.services.database import close_connections, initialize_app_database
from src.utils.config import get_config


def configure_logging(level_name: str) -> None:
    """Configure root logging for the server process."""
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


def initialize_application() -> bool:
    """
    Initialize the application.

    Sets up the database and performs any necessary startup checks.

    Returns:
        True if initialization successful, False otherwise
    """
    try:
        print("Initializing database...")
        initialize_app_database()
        print("Database initialized successfully")
        return True

    except Exception as e:
        print(f"ERROR: Failed to initialize application: {e}")
        traceback.print_exc()
        return False


def main(argv=None):
    """
    Main application entry point.

    Initializes the application and serves the API.
    """
    config = get_config()

    parser = argparse.ArgumentParser(description=f"{config.app_name} API server")
    parser.add_argument("--host", default=config.api_host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=config.api_port, help="Port to listen on")
    parser.add_argument(
        "--reload", action="store_true", help="Restart the server when source files change"
    )
    args = parser.parse_args(argv)

    configure_logging(config.log_level)

    print(f"Starting {config.app_name} v{config.app_version}")
    print(f"Environment: {config.environment}")
    print(f"Database: {config.database_url}")

    if not initialize_application():
        print("Application initialization failed. Exiting.")
        sys.exit(1)

    try:
        if args.reload:
            # Reload needs an import string rather than the app object
            uvicorn.run(
                "src.api.app:app",
                host=args.host,
                port=args.port,
                reload=True,
                log_level=config.log_level.lower(),
            )
        else:
            from src.api.app import app

            uvicorn.run(app, host=args.host, port=args.port, log_level=config.log_level.lower())
    finally:
        close_connections()


if __name__ == "__main__":
    main()
