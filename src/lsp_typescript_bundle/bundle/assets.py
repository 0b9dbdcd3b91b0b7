from functools import lru_cache
from importlib import resources
from pathlib import Path

from .composer import ComposedBundle, load_composed

_PACKAGE = "lsp_typescript_bundle"
_DATA_DIR = "data"


def bundle_root() -> Path:
    """Directory holding the packaged bundle.md, behaviors, agents and context."""
    return Path(str(resources.files(_PACKAGE).joinpath(_DATA_DIR)))


def behavior_path() -> Path:
    return bundle_root() / "behaviors" / "lsp-typescript.yaml"


@lru_cache(maxsize=1)
def load_default_bundle() -> ComposedBundle:
    """Load and compose the packaged bundle once per process."""
    return load_composed(bundle_root(), policy="override")
