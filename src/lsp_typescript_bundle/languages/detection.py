import logging
import os
import shutil
import threading
from collections.abc import Mapping
from pathlib import Path

from .base import LanguageServerConfig

logger = logging.getLogger(__name__)

# Dependency, build and tool-state directories never hold project sources.
IGNORED_DIR_NAMES = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        ".next",
        ".nuxt",
        ".turbo",
        ".venv",
        ".yarn",
        "__pycache__",
        "bower_components",
        "build",
        "coverage",
        "dist",
        "node_modules",
        "out",
        "venv",
    }
)

MAX_SCANNED_FILES = 20_000

_CACHE_LOCK = threading.Lock()
_CacheKey = tuple[Path, tuple[tuple[str, tuple[str, ...]], ...]]
_LANGUAGE_CACHE: dict[_CacheKey, frozenset[str]] = {}


def detect_available_lsp_servers(
    configs: Mapping[str, LanguageServerConfig],
) -> frozenset[str]:
    """Return language ids whose server executable resolves on PATH."""
    available = set()
    for language_id, config in configs.items():
        if shutil.which(config.server_executable):
            available.add(language_id)
        else:
            logger.debug(
                "Server %s for %s not found on PATH", config.server_executable, language_id
            )
    return frozenset(available)


def _scan_languages(root: Path, configs: Mapping[str, LanguageServerConfig]) -> frozenset[str]:
    found: set[str] = set()
    scanned = 0
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in IGNORED_DIR_NAMES]
        for filename in filenames:
            scanned += 1
            for language_id, config in configs.items():
                if language_id not in found and config.matches_file(filename):
                    found.add(language_id)
            if len(found) == len(configs) or scanned >= MAX_SCANNED_FILES:
                if scanned >= MAX_SCANNED_FILES:
                    logger.debug("Stopped language scan of %s after %d files", root, scanned)
                return frozenset(found)
    return frozenset(found)


def get_workspace_languages(
    root: str | Path,
    configs: Mapping[str, LanguageServerConfig],
) -> frozenset[str]:
    """Language ids with at least one source file under ``root`` (cached per root)."""
    resolved = Path(root).resolve()
    key = (resolved, tuple(sorted((lid, c.extensions) for lid, c in configs.items())))
    with _CACHE_LOCK:
        cached = _LANGUAGE_CACHE.get(key)
    if cached is not None:
        return cached
    languages = _scan_languages(resolved, configs)
    with _CACHE_LOCK:
        _LANGUAGE_CACHE[key] = languages
    return languages


def clear_language_cache(root: str | Path | None = None) -> None:
    with _CACHE_LOCK:
        if root is None:
            _LANGUAGE_CACHE.clear()
        else:
            resolved = Path(root).resolve()
            for key in [k for k in _LANGUAGE_CACHE if k[0] == resolved]:
                del _LANGUAGE_CACHE[key]
