import logging
import os
from typing import Optional


_LOGGER: Optional[logging.Logger] = None

TRUTHY = {"1", "true", "yes", "on", "debug"}
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DEBUG_LOG_FILE = "nexplore_debug.log"


def env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in TRUTHY


def _log_path(debug_enabled: bool) -> Optional[str]:
    """NEXPLORE_LOG wins; debug mode alone logs next to the working directory."""
    explicit = os.environ.get("NEXPLORE_LOG")
    if explicit:
        return os.path.expanduser(explicit)
    if debug_enabled:
        return os.path.join(os.getcwd(), DEBUG_LOG_FILE)
    return None


def _build_handler(log_path: Optional[str], level: int) -> logging.Handler:
    if not log_path:
        return logging.NullHandler()
    try:
        handler: logging.Handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError as exc:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger("nexplore").addHandler(handler)
        logging.getLogger("nexplore").warning(
            "Failed to create log file '%s': %s. Falling back to standard error.",
            log_path,
            exc,
        )
        return handler
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def get_logger(name: str = "nexplore") -> logging.Logger:
    """Child of the ``nexplore`` logger, configured once from the environment.

    Handlers are only attached when nobody else configured logging; a host
    that installs root handlers (or pytest) gets plain propagation.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER.getChild(name)

    debug_enabled = env_flag("NEXPLORE_DEBUG")
    level = logging.DEBUG if debug_enabled else logging.INFO

    logger = logging.getLogger("nexplore")
    logger.setLevel(level)
    if not logger.handlers and not logging.getLogger().handlers:
        handler = _build_handler(_log_path(debug_enabled), level)
        if handler not in logger.handlers:
            logger.addHandler(handler)

    _LOGGER = logger
    return logger.getChild(name)


def reset_logger() -> None:
    """Forget the cached logger so the next call re-reads the environment."""
    global _LOGGER
    logger = logging.getLogger("nexplore")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _LOGGER = None
