"""YAML and markdown-frontmatter parsing shared by bundle and agent files."""

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigurationError

FRONTMATTER_DELIMITER = "---"


class _UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that rejects duplicate mapping keys instead of overwriting."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _ in node.value:
            if key_node.tag == "tag:yaml.org,2002:merge":
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                # Unhashable keys are reported by the base constructor
                continue
            if duplicate:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def load_yaml_text(text: str, *, source: str | None = None) -> Any:
    """Parse YAML text, rejecting duplicate keys.

    Raises:
        ConfigurationError: If the text is not valid YAML.
    """
    try:
        return yaml.load(text, Loader=_UniqueKeyLoader)  # nosec B506 - SafeLoader subclass
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML: {exc}", source=source) from exc


def load_yaml_file(path: str | Path) -> Any:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read file: {exc}", source=str(path)) from exc
    return load_yaml_text(text, source=str(path))


def parse_frontmatter(text: str, *, source: str | None = None) -> tuple[dict[str, Any], str]:
    """Split markdown with a leading YAML block into (metadata, body).

    Text without frontmatter yields an empty mapping and the full text.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        return {}, text

    for index in range(1, len(lines)):
        if lines[index].strip() == FRONTMATTER_DELIMITER:
            header = "".join(lines[1:index])
            body = "".join(lines[index + 1 :])
            break
    else:
        raise ConfigurationError("unterminated frontmatter block", source=source)

    meta = load_yaml_text(header, source=source)
    if meta is None:
        meta = {}
    if not isinstance(meta, Mapping):
        raise ConfigurationError(
            f"frontmatter must be a mapping, got {type(meta).__name__}",
            source=source,
        )
    return dict(meta), body.lstrip("\n")
