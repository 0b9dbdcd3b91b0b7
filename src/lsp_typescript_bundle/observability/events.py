import glob
import hashlib
import json
import logging
import threading
from datetime import UTC, datetime
from typing import Any

from ..config import settings
from .context import bundle_name, get_trace_id

logger = logging.getLogger(__name__)

MAX_ROTATED_LOGS = 5
_LOG_LOCK = threading.Lock()

_LEVELS = frozenset({"debug", "info", "warning", "error"})

# Keys whose string values may carry user paths or server arguments.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "command",
        "detail",
        "error",
        "initialization_options",
        "message",
        "path",
        "source",
        "start",
    }
)

_SANITIZE_DEPTH_LIMIT = 6
_SANITIZE_LIST_LIMIT = 20


def _make_placeholder(value: str) -> str:
    hex12 = hashlib.sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"[REDACTED len={len(value)} sha256={hex12}]"


def _sanitize_value(key: str, value: Any, depth: int) -> Any:
    if depth > _SANITIZE_DEPTH_LIMIT:
        return "[REDACTED depth_limit]"
    sensitive = key.lower() in _SENSITIVE_KEYS
    if isinstance(value, dict):
        if sensitive:
            return {k: _make_placeholder(json.dumps(v, default=str)) for k, v in value.items()}
        return {k: _sanitize_value(k, v, depth + 1) for k, v in value.items()}
    if isinstance(value, list | tuple):
        result: list[Any] = []
        for item in list(value)[:_SANITIZE_LIST_LIMIT]:
            if isinstance(item, str) and sensitive:
                result.append(_make_placeholder(item))
            else:
                result.append(_sanitize_value(key, item, depth + 1))
        if len(value) > _SANITIZE_LIST_LIMIT:
            result.append(f"[REDACTED list_len={len(value)}]")
        return result
    if isinstance(value, str) and sensitive:
        return _make_placeholder(value)
    return value


def _sanitize_event(event: dict[str, Any]) -> dict[str, Any]:
    if not settings.LSP_BUNDLE_LOG_REDACT:
        return event
    return {k: _sanitize_value(k, v, 0) for k, v in event.items()}


def _normalize_level(value: object, *, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip().lower()
    if text in _LEVELS:
        return text
    if text == "warn":
        return "warning"
    return default


def rotate_log_if_needed() -> None:
    try:
        log_path = settings.LOG_PATH
        if log_path.exists() and log_path.stat().st_size > settings.MAX_LOG_SIZE_BYTES:
            ts = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
            stem = log_path.stem
            suffix = log_path.suffix
            rotated_path = log_path.with_name(f"{stem}.{ts}{suffix}")
            log_path.rename(rotated_path)
            logger.debug("Rotated log file to %s", rotated_path)

            pattern = f"{glob.escape(stem)}.*{glob.escape(suffix)}"
            rotated_logs = sorted(log_path.parent.glob(pattern), reverse=True)
            for old_log in rotated_logs[MAX_ROTATED_LOGS:]:
                old_log.unlink(missing_ok=True)
                logger.debug("Cleaned up old log file: %s", old_log)
    except OSError as exc:
        logger.warning("Failed to rotate log file: %s", exc)


def log_event(event: dict[str, Any]) -> None:
    """Write a single JSON event to the local event log.

    Args:
        event: Event data to log. Enriched with timestamp, trace_id, bundle and level.
    """
    if not settings.LSP_BUNDLE_LOGGING:
        return

    event = dict(event)
    try:
        if "timestamp" not in event:
            event["timestamp"] = datetime.now(UTC).isoformat()
        if "trace_id" not in event:
            event["trace_id"] = get_trace_id()
        if "bundle" not in event:
            current_bundle = bundle_name.get()
            if current_bundle:
                event["bundle"] = current_bundle
        if "level" not in event:
            kind = str(event.get("kind", "")).lower()
            event["level"] = "error" if kind.endswith("error") else "info"
        event["level"] = _normalize_level(event.get("level"), default="info")

        event = _sanitize_event(event)

        with _LOG_LOCK:
            if settings.LOG_PATH.is_dir():
                logger.warning("Log path is a directory, skipping log write")
                return
            settings.LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
            rotate_log_if_needed()
            with open(settings.LOG_PATH, "a", encoding="utf-8") as f:
                f.write(json.dumps(event, ensure_ascii=False, default=str) + "\n")
    except (OSError, TypeError, ValueError) as exc:
        logger.warning("Failed to write event log: %s", exc)
