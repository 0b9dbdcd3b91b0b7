from .context import (
    bundle_name,
    clear_context,
    get_trace_id,
    set_bundle_context,
    start_trace,
    trace_id,
)
from .events import log_event

__all__ = [
    "bundle_name",
    "clear_context",
    "get_trace_id",
    "log_event",
    "set_bundle_context",
    "start_trace",
    "trace_id",
]
