import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s: %(message)s"

logger = logging.getLogger(__name__)


def resolve_level(level: str) -> str:
    """Upper-cased level name, or ``INFO`` if ``level`` is not one logging knows."""
    name = (level or "").strip().upper()
    if isinstance(logging.getLevelName(name), int):
        return name
    return "INFO"


def configure_logging(level: str) -> None:
    resolved = resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    if resolved != (level or "").strip().upper():
        logger.warning("Unknown log level %r, falling back to INFO", level)
