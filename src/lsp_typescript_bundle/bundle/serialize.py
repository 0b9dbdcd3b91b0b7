from collections.abc import Mapping
from typing import Any

import yaml

from ..documents import load_yaml_text
from ..errors import ConfigurationError
from ..languages.base import LanguageServerConfig


def languages_to_mapping(configs: Mapping[str, LanguageServerConfig]) -> dict[str, Any]:
    return {"languages": {lid: config.to_mapping() for lid, config in configs.items()}}


def dump_languages(configs: Mapping[str, LanguageServerConfig]) -> str:
    """Serialize language records to the behavior YAML shape."""
    return yaml.safe_dump(
        languages_to_mapping(configs),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )


def load_languages(text: str, *, source: str | None = None) -> dict[str, LanguageServerConfig]:
    """Parse a ``languages:`` document produced by dump_languages.

    Raises:
        ConfigurationError: If the document or any record is invalid.
    """
    data = load_yaml_text(text, source=source)
    if not isinstance(data, Mapping) or not isinstance(data.get("languages"), Mapping):
        raise ConfigurationError("is required", source=source, field="languages")
    return {
        str(lid): LanguageServerConfig.from_mapping(str(lid), record, source=source)
        for lid, record in data["languages"].items()
    }
