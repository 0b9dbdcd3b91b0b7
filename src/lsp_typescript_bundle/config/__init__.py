"""Configuration module for lsp-typescript-bundle."""

from . import settings
from .compat import env_bool
from .settings import COMPOSE_POLICIES, reload_settings

__all__ = [
    "COMPOSE_POLICIES",
    "env_bool",
    "reload_settings",
    "settings",
]
