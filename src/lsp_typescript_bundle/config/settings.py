import logging
import os
from pathlib import Path

from platformdirs import user_state_dir

from .compat import env_bool

logger = logging.getLogger(__name__)

__all__ = [
    "COMPOSE_POLICIES",
    "COMPOSE_POLICY",
    "LOG_PATH",
    "LSP_BUNDLE_LOGGING",
    "LSP_BUNDLE_LOG_REDACT",
    "STRICT_EXTENSIONS",
    "reload_settings",
]

# How overlapping language ids from several bundles are resolved:
# 'override' (last loaded wins) or 'error' (differing records are rejected)
COMPOSE_POLICIES = ("override", "error")

MAX_LOG_SIZE_BYTES = 10 * 1024 * 1024

# Logging - Cross-platform state directory:
# - Linux: ~/.local/state/lsp-typescript-bundle
# - macOS: ~/Library/Application Support/lsp-typescript-bundle
# - Windows: %LOCALAPPDATA%\lsp-typescript-bundle
# Note: Directory is created lazily when the first event is written
LOG_DIR = Path(user_state_dir("lsp-typescript-bundle", appauthor=False))


def _get_logging_mode() -> str:
    # Options: off (disabled), safe (enabled with redaction), full (enabled without redaction)
    raw = os.getenv("LSP_BUNDLE_LOGGING", "off").strip().lower()
    if raw in ("1", "true", "yes"):
        return "safe"
    if raw in ("safe", "full"):
        return raw
    return "off"


def _get_log_path() -> Path:
    raw = os.getenv("LSP_BUNDLE_LOG_PATH", "").strip()
    return Path(raw).expanduser() if raw else LOG_DIR / "events.jsonl"


def _get_compose_policy() -> str:
    raw = os.environ.get("LSP_BUNDLE_COMPOSE_POLICY", "").strip().lower()
    if not raw:
        return "override"
    if raw not in COMPOSE_POLICIES:
        logger.warning("Unknown LSP_BUNDLE_COMPOSE_POLICY %r, using 'override'", raw)
        return "override"
    return raw


LSP_BUNDLE_LOGGING_MODE = _get_logging_mode()
LSP_BUNDLE_LOGGING = LSP_BUNDLE_LOGGING_MODE != "off"
LSP_BUNDLE_LOG_REDACT = LSP_BUNDLE_LOGGING_MODE != "full"
LOG_PATH = _get_log_path()

COMPOSE_POLICY = _get_compose_policy()

# Require extensions to carry their leading separator (".ts", not "ts")
STRICT_EXTENSIONS = env_bool("LSP_BUNDLE_STRICT_EXTENSIONS", default=True)


def reload_settings() -> None:
    """Re-read environment-driven settings (e.g. after loading a .env file)."""
    global LSP_BUNDLE_LOGGING_MODE, LSP_BUNDLE_LOGGING, LSP_BUNDLE_LOG_REDACT, LOG_PATH
    global COMPOSE_POLICY, STRICT_EXTENSIONS

    LSP_BUNDLE_LOGGING_MODE = _get_logging_mode()
    LSP_BUNDLE_LOGGING = LSP_BUNDLE_LOGGING_MODE != "off"
    LSP_BUNDLE_LOG_REDACT = LSP_BUNDLE_LOGGING_MODE != "full"
    LOG_PATH = _get_log_path()
    COMPOSE_POLICY = _get_compose_policy()
    STRICT_EXTENSIONS = env_bool("LSP_BUNDLE_STRICT_EXTENSIONS", default=True)
    logger.debug(
        "Settings reloaded: logging=%s policy=%s strict_extensions=%s",
        LSP_BUNDLE_LOGGING_MODE,
        COMPOSE_POLICY,
        STRICT_EXTENSIONS,
    )
