from .observability import log_event


def log_bundle_loaded(
    name: str,
    source: str,
    languages: list[str],
    latency_ms: float,
) -> None:
    log_event(
        {
            "kind": "bundle_loaded",
            "level": "info",
            "bundle": name,
            "source": source,
            "languages": languages,
            "latency_ms": int(latency_ms),
        }
    )


def log_bundle_config_error(
    source: str | None,
    field: str | None,
    error: str,
) -> None:
    log_event(
        {
            "kind": "bundle_config_error",
            "level": "error",
            "source": source or "",
            "field": field or "",
            "error": error,
            "error_type": "ConfigurationError",
        }
    )


def log_language_override(
    language_id: str,
    previous_bundle: str,
    bundle: str,
    command: list[str],
) -> None:
    log_event(
        {
            "kind": "bundle_language_override",
            "level": "warning",
            "language_id": language_id,
            "previous_bundle": previous_bundle,
            "winning_bundle": bundle,
            "command": command,
        }
    )


def log_external_include(bundle: str, reference: str) -> None:
    log_event(
        {
            "kind": "bundle_external_include",
            "level": "debug",
            "bundle": bundle,
            "reference": reference,
        }
    )


def log_workspace_root_fallback(
    language_id: str,
    start: str,
    fallback: str,
) -> None:
    log_event(
        {
            "kind": "workspace_root_fallback",
            "level": "info",
            "language_id": language_id,
            "start": start,
            "path": fallback,
        }
    )
