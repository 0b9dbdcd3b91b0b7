import logging
import os

logger = logging.getLogger(__name__)

_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})
_FALSY = frozenset({"0", "false", "no", "n", "off"})


def env_bool(name: str, *, default: bool) -> bool:
    """Read a boolean environment variable.

    Unrecognized values fall back to ``default`` with a warning.
    """
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    logger.warning("Ignoring invalid boolean for %s: %r", name, raw)
    return default

