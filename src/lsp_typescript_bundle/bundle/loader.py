import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..documents import load_yaml_file, parse_frontmatter
from ..errors import ConfigurationError
from ..languages.base import LanguageServerConfig
from ..logging import log_bundle_config_error, log_bundle_loaded

logger = logging.getLogger(__name__)

BUNDLE_FILENAMES = ("bundle.md", "bundle.yaml", "bundle.yml")
YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class Bundle:
    """A single bundle or behavior file as declared on disk."""

    name: str
    version: str
    source: Path
    description: str = ""
    includes: tuple[str, ...] = ()
    languages: dict[str, LanguageServerConfig] = field(default_factory=dict)
    tools: tuple[dict[str, Any], ...] = ()
    agents: tuple[str, ...] = ()
    context: tuple[str, ...] = ()
    instructions: str = ""

    @property
    def base_dir(self) -> Path:
        return self.source.parent


def _reference_list(value: Any, *, field_path: str, source: str) -> tuple[str, ...]:
    """Accept `[ref, ...]`, `{include: [ref, ...]}` and `[{bundle: ref}, ...]` shapes."""
    if value is None:
        return ()
    if isinstance(value, Mapping):
        value = value.get("include")
        if value is None:
            return ()
    if not isinstance(value, list):
        raise ConfigurationError(
            f"must be a list, got {type(value).__name__}",
            source=source,
            field=field_path,
        )
    refs: list[str] = []
    for index, entry in enumerate(value):
        if isinstance(entry, Mapping):
            entry = entry.get("bundle")
        if not isinstance(entry, str) or not entry.strip():
            raise ConfigurationError(
                f"entry {index} must be a non-empty reference",
                source=source,
                field=field_path,
            )
        refs.append(entry.strip())
    return tuple(refs)


def _parse_languages(
    value: Any,
    *,
    field_path: str,
    source: str,
    into: dict[str, LanguageServerConfig],
) -> None:
    if value is None:
        return
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"must be a mapping of language id to record, got {type(value).__name__}",
            source=source,
            field=field_path,
        )
    for language_id, record in value.items():
        language_id = str(language_id)
        if language_id in into:
            raise ConfigurationError(
                f"language {language_id!r} is declared more than once",
                source=source,
                field=f"{field_path}.{language_id}",
            )
        into[language_id] = LanguageServerConfig.from_mapping(language_id, record, source=source)


def _parse_tools(
    value: Any,
    *,
    source: str,
    languages: dict[str, LanguageServerConfig],
) -> tuple[dict[str, Any], ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ConfigurationError(
            f"must be a list, got {type(value).__name__}", source=source, field="tools"
        )
    tools: list[dict[str, Any]] = []
    for index, entry in enumerate(value):
        if not isinstance(entry, Mapping) or not isinstance(entry.get("module"), str):
            raise ConfigurationError(
                "each tool needs a 'module' name", source=source, field=f"tools[{index}]"
            )
        config = entry.get("config") or {}
        if not isinstance(config, Mapping):
            raise ConfigurationError(
                "must be a mapping", source=source, field=f"tools[{index}].config"
            )
        _parse_languages(
            config.get("languages"),
            field_path="languages",
            source=source,
            into=languages,
        )
        tools.append(dict(entry))
    return tuple(tools)


def bundle_from_mapping(
    data: Any,
    *,
    source: str | Path,
    instructions: str = "",
) -> Bundle:
    """Validate a parsed bundle document and build a Bundle.

    Raises:
        ConfigurationError: If the document shape or any language record is invalid.
    """
    source_str = str(source)
    if not isinstance(data, Mapping):
        raise ConfigurationError(
            f"bundle document must be a mapping, got {type(data).__name__}",
            source=source_str,
        )

    header = data.get("bundle")
    if not isinstance(header, Mapping):
        raise ConfigurationError("is required", source=source_str, field="bundle")
    name = header.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("is required", source=source_str, field="bundle.name")
    version = header.get("version")
    description = header.get("description") or ""

    languages: dict[str, LanguageServerConfig] = {}
    tools = _parse_tools(data.get("tools"), source=source_str, languages=languages)
    _parse_languages(
        data.get("languages"),
        field_path="languages",
        source=source_str,
        into=languages,
    )

    return Bundle(
        name=name.strip(),
        version="0.0.0" if version is None else str(version),
        source=Path(source),
        description=str(description).strip(),
        includes=_reference_list(data.get("includes"), field_path="includes", source=source_str),
        languages=languages,
        tools=tools,
        agents=_reference_list(data.get("agents"), field_path="agents", source=source_str),
        context=_reference_list(data.get("context"), field_path="context", source=source_str),
        instructions=instructions,
    )


def find_bundle_file(path: str | Path) -> Path:
    """Return the bundle file for a path, looking inside directories."""
    path = Path(path)
    if path.is_dir():
        for filename in BUNDLE_FILENAMES:
            candidate = path / filename
            if candidate.is_file():
                return candidate
        raise ConfigurationError(
            f"no {' / '.join(BUNDLE_FILENAMES)} found in directory", source=str(path)
        )
    if not path.is_file():
        raise ConfigurationError("file not found", source=str(path))
    return path


def _read_document(bundle_file: Path) -> tuple[Any, str]:
    if bundle_file.suffix.lower() in YAML_SUFFIXES:
        return load_yaml_file(bundle_file), ""
    try:
        text = bundle_file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read file: {exc}", source=str(bundle_file)) from exc
    return parse_frontmatter(text, source=str(bundle_file))


def read_bundle_name(bundle_file: Path) -> str | None:
    """Return `bundle.name` from a bundle file without validating the rest of it.

    Unreadable or malformed files yield None and are not reported as errors.
    """
    try:
        data, _ = _read_document(bundle_file)
    except ConfigurationError as exc:
        logger.debug("Cannot read bundle header from %s: %s", bundle_file, exc)
        return None
    header = data.get("bundle") if isinstance(data, Mapping) else None
    name = header.get("name") if isinstance(header, Mapping) else None
    if isinstance(name, str) and name.strip():
        return name.strip()
    return None


def load_bundle(path: str | Path) -> Bundle:
    """Load a bundle.md, behavior YAML file, or bundle directory.

    Raises:
        ConfigurationError: If the file cannot be read, parsed or validated.
    """
    start = time.perf_counter()
    try:
        bundle_file = find_bundle_file(path)
        data, body = _read_document(bundle_file)
        bundle = bundle_from_mapping(data, source=bundle_file, instructions=body.strip())
    except ConfigurationError as exc:
        logger.error("Invalid bundle configuration: %s", exc)
        log_bundle_config_error(exc.source, exc.field, exc.message)
        raise

    latency_ms = (time.perf_counter() - start) * 1000
    logger.debug(
        "Loaded bundle %s@%s from %s (%d languages)",
        bundle.name,
        bundle.version,
        bundle.source,
        len(bundle.languages),
    )
    log_bundle_loaded(bundle.name, str(bundle.source), sorted(bundle.languages), latency_ms)
    return bundle
