"""Entry point for serving the Equipment Reservation API.

Host and port are read from the ``API_HOST`` and ``API_PORT``
environment variables (defaults ``0.0.0.0`` and ``8000``); the rest of
the configuration comes from ``equipment_reservation_api.app.core.config``.

Usage:
    python run.py
"""

import asyncio
import logging
import os

from uvicorn import Config, Server

from equipment_reservation_api.app.core.config import settings
from equipment_reservation_api.app.main import app


async def run_api() -> None:
    """Start the API using Uvicorn."""
    host = os.getenv("API_HOST", "0.0.0.0")
    port = int(os.getenv("API_PORT", "8000"))
    config = Config(app=app, host=host, port=port, reload=False, log_level=settings.log_level.lower())
    server = Server(config)
    await server.serve()


def main() -> None:
    try:
        asyncio.run(run_api())
    except (KeyboardInterrupt, SystemExit):
        logging.getLogger(__name__).info("API server stopped")


if __name__ == "__main__":
    main()
