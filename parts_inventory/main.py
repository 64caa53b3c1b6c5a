"""Entrypoint for running the inventory app locally."""
from __future__ import annotations

import logging

from .app import create_app
from .config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def run() -> None:
    """Convenience wrapper used by ``python -m parts_inventory.main``."""

    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    app = create_app(settings)
    app.run(
        host=settings.host,
        port=settings.port,
        debug=settings.environment == "development",
    )


if __name__ == "__main__":
    run()
