"""Entry point for the ``salon-os`` command.

Configures process logging from settings, then hands over to the booking
and reflection commands in ``salon_os.cli.commands``.
"""

import logging
import sys

from salon_os.config import get_settings


def setup_logging():
    """Log scheduling activity to stdout at the configured level.

    SQLAlchemy's engine logger stays at WARNING so per-statement SQL does not
    drown out availability and reflection messages.
    """
    settings = get_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def main():
    """Run the salon-os CLI."""
    setup_logging()

    from salon_os.cli.commands import app

    app()


if __name__ == "__main__":
    main()
