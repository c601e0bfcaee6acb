"""Start the back office under uvicorn with host, port and log level from settings."""
import logging

import uvicorn

from arbati.core.config import settings
from arbati.core.logging_config import configure_logging

logger = logging.getLogger("arbati.server")


def uvicorn_options() -> dict:
    return {
        "host": settings.HOST,
        "port": settings.PORT,
        "log_level": settings.LOG_LEVEL.lower(),
        # auto-reload only while developing
        "reload": settings.DEBUG,
    }


def main() -> None:
    configure_logging()
    options = uvicorn_options()
    logger.info(f"Arbati back office on http://{options['host']}:{options['port']} ({settings.ENVIRONMENT})")
    uvicorn.run("arbati.main:app", **options)


if __name__ == "__main__":
    main()
