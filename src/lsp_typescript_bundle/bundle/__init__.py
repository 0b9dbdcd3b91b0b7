from .assets import behavior_path, bundle_root, load_default_bundle
from .composer import (
    ComposedBundle,
    IncludeResolver,
    collect_bundles,
    compose_bundles,
    is_external_reference,
    load_composed,
)
from .loader import Bundle, bundle_from_mapping, find_bundle_file, load_bundle
from .serialize import dump_languages, load_languages

__all__ = [
    "Bundle",
    "ComposedBundle",
    "IncludeResolver",
    "behavior_path",
    "bundle_from_mapping",
    "bundle_root",
    "collect_bundles",
    "compose_bundles",
    "dump_languages",
    "find_bundle_file",
    "is_external_reference",
    "load_bundle",
    "load_composed",
    "load_default_bundle",
    "load_languages",
]
