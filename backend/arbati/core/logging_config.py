"""Logging setup, run once at application start."""
import logging

from arbati.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # Audit events are JSON lines; keep them even when the app log is quieter.
    logging.getLogger("audit").setLevel(logging.INFO)
