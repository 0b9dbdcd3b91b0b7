"""Context attached to every structured event of one bundle load."""

import uuid
from contextvars import ContextVar

# "b-" followed by 12 hex digits; shared by all events of a single load_composed call
trace_id: ContextVar[str] = ContextVar("trace_id", default="")
bundle_name: ContextVar[str] = ContextVar("bundle_name", default="")


def start_trace(tid: str | None = None) -> str:
    """Begin a new trace for a bundle load and forget the previous bundle name."""
    tid = tid or f"b-{uuid.uuid4().hex[:12]}"
    trace_id.set(tid)
    bundle_name.set("")
    return tid


def get_trace_id() -> str:
    return trace_id.get() or start_trace()


def set_bundle_context(name: str) -> None:
    """Tag later events of the current trace with the root bundle name."""
    bundle_name.set(name)


def clear_context() -> None:
    trace_id.set("")
    bundle_name.set("")
