__version__ = "1.0.0"

from .agents import AgentDefinition, load_agent
from .bundle import Bundle, ComposedBundle, compose_bundles, load_bundle, load_composed
from .errors import ConfigurationError
from .languages import LSP_OPERATIONS, LanguageServerConfig, get_config_for_file
from .workspace import find_workspace_root, resolve_workspace_root

__all__ = [
    "__version__",
    "AgentDefinition",
    "Bundle",
    "ComposedBundle",
    "ConfigurationError",
    "LSP_OPERATIONS",
    "LanguageServerConfig",
    "compose_bundles",
    "find_workspace_root",
    "get_config_for_file",
    "load_agent",
    "load_bundle",
    "load_composed",
    "resolve_workspace_root",
]
