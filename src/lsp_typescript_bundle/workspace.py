"""Workspace root resolution by upward marker search."""

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from .logging import log_workspace_root_fallback

if TYPE_CHECKING:
    from .languages.base import LanguageServerConfig

logger = logging.getLogger(__name__)


def _start_directory(start: str | Path) -> Path:
    path = Path(start).expanduser().resolve()
    if path.is_dir():
        return path
    # Files (existing or not yet created) search from their parent
    return path.parent


def _ancestors(start: Path, stop_at: Path | None) -> list[Path]:
    chain = [start]
    if stop_at is not None and start == stop_at:
        return chain
    for parent in start.parents:
        chain.append(parent)
        if stop_at is not None and parent == stop_at:
            break
    return chain


def find_workspace_root(
    start: str | Path,
    markers: Sequence[str],
    *,
    stop_at: str | Path | None = None,
) -> Path | None:
    """Find the project root for ``start`` using prioritized markers.

    Markers are tried in order. Each marker is searched from the start
    directory upward; the first directory containing it wins. A later marker
    is only consulted when no earlier marker exists anywhere above ``start``.

    Args:
        start: File or directory to resolve from.
        markers: File or directory names, highest priority first.
        stop_at: Optional directory that bounds the upward search (inclusive).

    Returns:
        Directory containing the winning marker, or None if no marker is found.
    """
    directory = _start_directory(start)
    boundary = Path(stop_at).expanduser().resolve() if stop_at is not None else None
    if boundary is not None and directory != boundary and boundary not in directory.parents:
        logger.debug("Start %s is outside boundary %s, ignoring boundary", directory, boundary)
        boundary = None

    chain = _ancestors(directory, boundary)
    for marker in markers:
        for candidate in chain:
            if (candidate / marker).exists():
                logger.debug("Workspace marker %s found in %s", marker, candidate)
                return candidate
    return None


def resolve_workspace_root(
    config: "LanguageServerConfig",
    path: str | Path,
    *,
    stop_at: str | Path | None = None,
) -> Path:
    """Resolve the root for ``path``, falling back to its own directory."""
    root = find_workspace_root(path, config.workspace_markers, stop_at=stop_at)
    if root is not None:
        return root
    fallback = _start_directory(path)
    logger.info(
        "No %s workspace marker found above %s, using %s",
        config.language_id,
        path,
        fallback,
    )
    log_workspace_root_fallback(config.language_id, str(path), str(fallback))
    return fallback
