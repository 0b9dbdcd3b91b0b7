from collections.abc import Mapping
from pathlib import Path

from .base import LanguageServerConfig
from .detection import IGNORED_DIR_NAMES, clear_language_cache
from .detection import detect_available_lsp_servers as _detect_available
from .detection import get_workspace_languages as _workspace_languages
from .operations import LSP_OPERATIONS


def get_language_configs() -> dict[str, LanguageServerConfig]:
    """Registry of language configurations declared by the packaged bundle."""
    from ..bundle.assets import load_default_bundle

    return dict(load_default_bundle().languages)


def get_config_for_file(
    path: str | Path,
    configs: Mapping[str, LanguageServerConfig] | None = None,
) -> LanguageServerConfig | None:
    """Get the language configuration for a file path."""
    for config in (configs if configs is not None else get_language_configs()).values():
        if config.matches_file(path):
            return config
    return None


def detect_available_lsp_servers(
    configs: Mapping[str, LanguageServerConfig] | None = None,
) -> frozenset[str]:
    return _detect_available(configs if configs is not None else get_language_configs())


def get_workspace_languages(
    root: str | Path,
    configs: Mapping[str, LanguageServerConfig] | None = None,
) -> frozenset[str]:
    return _workspace_languages(root, configs if configs is not None else get_language_configs())


__all__ = [
    "IGNORED_DIR_NAMES",
    "LSP_OPERATIONS",
    "LanguageServerConfig",
    "clear_language_cache",
    "detect_available_lsp_servers",
    "get_config_for_file",
    "get_language_configs",
    "get_workspace_languages",
]
