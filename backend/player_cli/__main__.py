"""Console entry point for the player CLI."""
from __future__ import annotations

import logging
import os

from .app import app


def main() -> None:
    """Run the Typer application with warnings from the libraries on stderr."""

    logging.basicConfig(level=os.environ.get("VIDLUNA_LOG_LEVEL", "WARNING").upper())
    app(prog_name="vidluna")


if __name__ == "__main__":
    main()
