"""Plain-text logging config."""
import logging
import sys

# noisy at INFO
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiosqlite", "PIL")


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        stream=sys.stdout,
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    # basicConfig is a no-op once the root has handlers
    logging.getLogger("deepcheck").setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
