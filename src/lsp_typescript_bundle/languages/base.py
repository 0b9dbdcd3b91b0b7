import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..config import settings
from ..errors import ConfigurationError

_RECORD_KEYS = frozenset(
    {
        "extensions",
        "workspace_markers",
        "server",
        "initialization_options",
        "install_hint",
        "extension_language_map",
    }
)
_SERVER_KEYS = frozenset({"command"})


def _string_list(
    value: Any,
    *,
    field_path: str,
    source: str | None,
) -> tuple[str, ...]:
    if value is None:
        raise ConfigurationError("is required", source=source, field=field_path)
    if isinstance(value, str) or not isinstance(value, list | tuple):
        raise ConfigurationError(
            f"must be a list of strings, got {type(value).__name__}",
            source=source,
            field=field_path,
        )
    items: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(
                f"entry {index} must be a non-empty string",
                source=source,
                field=field_path,
            )
        items.append(item)
    if not items:
        raise ConfigurationError("must not be empty", source=source, field=field_path)
    return tuple(items)


def _check_entries(values: Iterable[Any], *, field_path: str) -> None:
    for index, item in enumerate(values):
        if not isinstance(item, str) or not item.strip():
            raise ConfigurationError(f"entry {index} must be a non-empty string", field=field_path)


def _dotted(ext: Any) -> Any:
    # Only applied when STRICT_EXTENSIONS is off
    if isinstance(ext, str) and ext.strip() and not ext.startswith("."):
        return f".{ext}"
    return ext


def _optional_mapping(value: Any, *, field_path: str, source: str | None) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"must be a mapping, got {type(value).__name__}",
            source=source,
            field=field_path,
        )
    return dict(value)


def _freeze(value: Any) -> Any:
    """Read-only copy of nested mappings and lists."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, list | tuple):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class LanguageServerConfig:
    """Configuration for a language server.

    Declares which executable the host spawns for a language, which files
    belong to it and how the project root is located. Loaded once per session
    and never mutated: mapping fields are stored as read-only views.
    """

    language_id: str
    """LSP language identifier (e.g., "typescript", "javascript")."""

    extensions: tuple[str, ...]
    """File extensions this server handles (e.g., (".ts", ".tsx"))."""

    workspace_markers: tuple[str, ...]
    """Files or directories marking the project root, highest priority first."""

    command: tuple[str, ...]
    """Command the host runs to start the server (e.g., ("typescript-language-server", "--stdio"))."""

    initialization_options: Mapping[str, Any] = field(default_factory=dict)
    """Options forwarded verbatim in the initialize request."""

    install_hint: str = ""
    """Install instructions for the language server executable."""

    extension_language_map: Mapping[str, str] = field(default_factory=dict)
    """Optional mapping from file extension to languageId for multi-extension servers."""

    def __post_init__(self) -> None:
        extensions = tuple(self.extensions)
        ext_map = dict(self.extension_language_map)
        if not settings.STRICT_EXTENSIONS:
            extensions = tuple(_dotted(ext) for ext in extensions)
            ext_map = {_dotted(ext): lid for ext, lid in ext_map.items()}
        # Frozen dataclass: normalized values are installed with object.__setattr__
        object.__setattr__(self, "extensions", tuple(dict.fromkeys(extensions)))
        object.__setattr__(self, "workspace_markers", tuple(self.workspace_markers))
        object.__setattr__(self, "command", tuple(self.command))
        object.__setattr__(self, "extension_language_map", _freeze(ext_map))
        object.__setattr__(
            self, "initialization_options", _freeze(dict(self.initialization_options))
        )
        self.validate()

    @classmethod
    def from_mapping(
        cls,
        language_id: str,
        data: Any,
        *,
        source: str | None = None,
    ) -> "LanguageServerConfig":
        """Build a record from its YAML mapping.

        Raises:
            ConfigurationError: If the mapping is malformed or a required field is missing.
        """
        prefix = f"languages.{language_id}"
        if not isinstance(language_id, str) or not language_id.strip():
            raise ConfigurationError("language id must be a non-empty string", source=source)
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"must be a mapping, got {type(data).__name__}",
                source=source,
                field=prefix,
            )

        unknown = sorted(set(data) - _RECORD_KEYS)
        if unknown:
            raise ConfigurationError(
                f"unknown keys: {', '.join(map(str, unknown))}",
                source=source,
                field=prefix,
            )

        extensions = _string_list(
            data.get("extensions"),
            field_path=f"{prefix}.extensions",
            source=source,
        )
        markers = _string_list(
            data.get("workspace_markers"),
            field_path=f"{prefix}.workspace_markers",
            source=source,
        )

        server = data.get("server")
        if server is None:
            raise ConfigurationError("is required", source=source, field=f"{prefix}.server")
        if not isinstance(server, Mapping):
            raise ConfigurationError(
                f"must be a mapping, got {type(server).__name__}",
                source=source,
                field=f"{prefix}.server",
            )
        unknown_server = sorted(set(server) - _SERVER_KEYS)
        if unknown_server:
            raise ConfigurationError(
                f"unknown keys: {', '.join(map(str, unknown_server))}",
                source=source,
                field=f"{prefix}.server",
            )
        command = _string_list(
            server.get("command"),
            field_path=f"{prefix}.server.command",
            source=source,
        )

        install_hint = data.get("install_hint") or ""
        if not isinstance(install_hint, str):
            raise ConfigurationError(
                "must be a string", source=source, field=f"{prefix}.install_hint"
            )

        ext_map = _optional_mapping(
            data.get("extension_language_map"),
            field_path=f"{prefix}.extension_language_map",
            source=source,
        )

        try:
            return cls(
                language_id=language_id,
                extensions=extensions,
                workspace_markers=markers,
                command=command,
                initialization_options=_optional_mapping(
                    data.get("initialization_options"),
                    field_path=f"{prefix}.initialization_options",
                    source=source,
                ),
                install_hint=install_hint,
                extension_language_map={str(k): str(v) for k, v in ext_map.items()},
            )
        except ConfigurationError as exc:
            if exc.source is None:
                exc.source = source
            raise

    def validate(self) -> None:
        """Check the record invariants.

        Raises:
            ConfigurationError: If command, extensions or workspace markers are empty.
        """
        prefix = f"languages.{self.language_id}"
        if not self.command or not all(isinstance(p, str) and p.strip() for p in self.command):
            raise ConfigurationError(
                "must be a non-empty command", field=f"{prefix}.server.command"
            )
        if not self.extensions:
            raise ConfigurationError("must not be empty", field=f"{prefix}.extensions")
        _check_entries(self.extensions, field_path=f"{prefix}.extensions")
        for ext in self.extensions:
            if not ext.startswith("."):
                raise ConfigurationError(
                    f"extension {ext!r} must start with '.'", field=f"{prefix}.extensions"
                )
        if not self.workspace_markers:
            raise ConfigurationError("must not be empty", field=f"{prefix}.workspace_markers")
        _check_entries(self.workspace_markers, field_path=f"{prefix}.workspace_markers")
        stray = sorted(set(self.extension_language_map) - set(self.extensions))
        if stray:
            raise ConfigurationError(
                f"maps extensions not listed in extensions: {', '.join(stray)}",
                field=f"{prefix}.extension_language_map",
            )

    def to_mapping(self) -> dict[str, Any]:
        """Return the YAML mapping for this record (inverse of from_mapping)."""
        data: dict[str, Any] = {
            "extensions": list(self.extensions),
            "workspace_markers": list(self.workspace_markers),
            "server": {"command": list(self.command)},
        }
        if self.initialization_options:
            data["initialization_options"] = _thaw(self.initialization_options)
        if self.install_hint:
            data["install_hint"] = self.install_hint
        if self.extension_language_map:
            data["extension_language_map"] = _thaw(self.extension_language_map)
        return data

    def matches_file(self, path: str | Path) -> bool:
        """Check if this config handles the given file path."""
        name = str(path)
        return any(name.endswith(ext) for ext in self.extensions)

    def get_language_id(self, path: str | Path) -> str:
        """Get the languageId for a file based on its extension."""
        name = str(path)
        if self.extension_language_map:
            # Longest suffix first so ".d.ts"-style entries beat ".ts"
            for ext in sorted(self.extension_language_map, key=len, reverse=True):
                if name.endswith(ext):
                    return self.extension_language_map[ext]
        return self.language_id

    def find_workspace_root(
        self,
        path: str | Path,
        *,
        stop_at: str | Path | None = None,
    ) -> Path | None:
        """Locate the project root for ``path`` using this record's markers."""
        from ..workspace import find_workspace_root

        return find_workspace_root(path, self.workspace_markers, stop_at=stop_at)

    @property
    def server_executable(self) -> str:
        return self.command[0]

    def is_server_available(self) -> bool:
        """Check whether the server executable resolves on PATH."""
        return shutil.which(self.server_executable) is not None
