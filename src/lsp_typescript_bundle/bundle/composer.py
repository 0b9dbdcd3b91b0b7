"""Bundle composition: include resolution and language record merging.

Bundles are composed in load order. Includes are loaded depth-first before the
bundle that includes them, so the including bundle is "later" and its records
win under the default ``override`` policy.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..agents import AgentDefinition, load_agent
from ..config import settings
from ..errors import ConfigurationError
from ..languages.base import LanguageServerConfig
from ..logging import log_bundle_config_error, log_external_include, log_language_override
from ..observability import set_bundle_context, start_trace
from .loader import (
    BUNDLE_FILENAMES,
    YAML_SUFFIXES,
    Bundle,
    find_bundle_file,
    load_bundle,
    read_bundle_name,
)

logger = logging.getLogger(__name__)

# "<namespace>:<relative path>", but not a URL scheme and not a Windows drive
_NAMESPACED_REF = re.compile(r"^(?P<namespace>[A-Za-z][\w.-]+):(?!//)(?P<path>.+)$")
_EXTERNAL_PREFIXES = ("git+", "http://", "https://", "file://")
_AGENT_DIR = "agents"


@dataclass
class ComposedBundle:
    """The result of composing a bundle with everything it includes."""

    name: str
    bundles: list[Bundle] = field(default_factory=list)
    languages: dict[str, LanguageServerConfig] = field(default_factory=dict)
    language_sources: dict[str, str] = field(default_factory=dict)
    external_includes: list[str] = field(default_factory=list)
    agents: dict[str, AgentDefinition] = field(default_factory=dict)
    context_files: list[Path] = field(default_factory=list)

    def get_config_for_file(self, path: str | Path) -> LanguageServerConfig | None:
        """Get the language configuration for a file path."""
        for config in self.languages.values():
            if config.matches_file(path):
                return config
        return None


def is_external_reference(reference: str) -> bool:
    return reference.startswith(_EXTERNAL_PREFIXES)


def _resolve_policy(policy: str | None) -> str:
    resolved = (policy or settings.COMPOSE_POLICY).strip().lower()
    if resolved not in settings.COMPOSE_POLICIES:
        raise ConfigurationError(
            f"unknown compose policy {resolved!r}; expected one of "
            f"{', '.join(settings.COMPOSE_POLICIES)}"
        )
    return resolved


def compose_bundles(
    bundles: Iterable[Bundle],
    *,
    policy: str | None = None,
    name: str | None = None,
) -> ComposedBundle:
    """Merge language records from bundles given in load order.

    Under ``override`` the last bundle declaring a language id wins. Under
    ``error`` differing records for the same id raise ConfigurationError.
    Identical records never conflict.
    """
    resolved_policy = _resolve_policy(policy)
    ordered = list(bundles)
    composed = ComposedBundle(name=name or (ordered[-1].name if ordered else ""))

    for bundle in ordered:
        composed.bundles.append(bundle)
        for language_id, config in bundle.languages.items():
            previous = composed.languages.get(language_id)
            if previous is not None and previous != config:
                previous_bundle = composed.language_sources[language_id]
                if resolved_policy == "error":
                    error = ConfigurationError(
                        f"language {language_id!r} is declared differently by bundles "
                        f"{previous_bundle!r} and {bundle.name!r}",
                        source=str(bundle.source),
                        field=f"languages.{language_id}",
                    )
                    log_bundle_config_error(error.source, error.field, error.message)
                    raise error
                logger.warning(
                    "Language %s from bundle %s overrides bundle %s",
                    language_id,
                    bundle.name,
                    previous_bundle,
                )
                log_language_override(
                    language_id, previous_bundle, bundle.name, list(config.command)
                )
            composed.languages[language_id] = config
            composed.language_sources[language_id] = bundle.name

    return composed


class IncludeResolver:
    """Maps include, agent and context references to local files.

    Namespaces are registered as bundles load: a bundle's name points at the
    directory holding its bundle file, so ``lsp-typescript:behaviors/x``
    resolves inside the ``lsp-typescript`` bundle tree.
    """

    def __init__(self) -> None:
        self.namespaces: dict[str, Path] = {}

    def register(self, bundle: Bundle) -> None:
        if bundle.source.suffix.lower() in YAML_SUFFIXES and bundle.source.name not in (
            "bundle.yaml",
            "bundle.yml",
        ):
            # Behavior files live below the bundle root and share its namespace
            return
        self.namespaces.setdefault(bundle.name, bundle.base_dir)

    def _discover(self, namespace: str, base_dir: Path) -> Path | None:
        """Find an enclosing bundle root named `namespace` above `base_dir`."""
        for directory in (base_dir, *base_dir.parents):
            for filename in BUNDLE_FILENAMES:
                candidate = directory / filename
                if candidate.is_file() and read_bundle_name(candidate) == namespace:
                    self.namespaces[namespace] = directory
                    return directory
        return None

    def _split(self, reference: str, base_dir: Path, *, source: str) -> Path:
        match = _NAMESPACED_REF.match(reference)
        if match is None:
            return (base_dir / reference).resolve()
        namespace = match.group("namespace")
        root = self.namespaces.get(namespace) or self._discover(namespace, base_dir)
        if root is None:
            raise ConfigurationError(
                f"unknown bundle namespace {namespace!r} in reference {reference!r}",
                source=source,
            )
        return (root / match.group("path")).resolve()

    def resolve_bundle(self, reference: str, base_dir: Path, *, source: str) -> Path:
        target = self._split(reference, base_dir, source=source)
        if target.is_dir() or target.is_file():
            return find_bundle_file(target)
        for suffix in (*YAML_SUFFIXES, ".md"):
            candidate = target.with_name(target.name + suffix)
            if candidate.is_file():
                return candidate
        raise ConfigurationError(f"included bundle {reference!r} not found", source=source)

    def resolve_agent(self, reference: str, base_dir: Path, *, source: str) -> Path:
        match = _NAMESPACED_REF.match(reference)
        if match is not None and "/" not in match.group("path"):
            # "namespace:agent-name" points at agents/<agent-name>.md
            reference = f"{match.group('namespace')}:{_AGENT_DIR}/{match.group('path')}"
        target = self._split(reference, base_dir, source=source)
        if target.suffix != ".md":
            target = target.with_name(target.name + ".md")
        if not target.is_file():
            raise ConfigurationError(f"agent {reference!r} not found", source=source)
        return target

    def resolve_context(self, reference: str, base_dir: Path, *, source: str) -> Path:
        target = self._split(reference.lstrip("@"), base_dir, source=source)
        if not target.is_file():
            raise ConfigurationError(f"context file {reference!r} not found", source=source)
        return target


def collect_bundles(
    path: str | Path,
    resolver: IncludeResolver | None = None,
) -> tuple[list[Bundle], list[str]]:
    """Load a bundle and its local includes depth-first.

    Returns:
        (bundles in load order, external include references)

    Raises:
        ConfigurationError: On invalid files, missing includes or include cycles.
    """
    resolver = resolver or IncludeResolver()
    ordered: list[Bundle] = []
    external: list[str] = []
    loaded: set[Path] = set()
    stack: list[Path] = []

    def visit(bundle_path: Path) -> None:
        bundle_path = bundle_path.resolve()
        if bundle_path in stack:
            chain = " -> ".join(str(p) for p in [*stack, bundle_path])
            raise ConfigurationError(f"include cycle: {chain}", source=str(bundle_path))
        if bundle_path in loaded:
            return

        bundle = load_bundle(bundle_path)
        resolver.register(bundle)
        stack.append(bundle_path)
        for reference in bundle.includes:
            if is_external_reference(reference):
                logger.info("Bundle %s includes external %s", bundle.name, reference)
                log_external_include(bundle.name, reference)
                if reference not in external:
                    external.append(reference)
                continue
            visit(resolver.resolve_bundle(reference, bundle.base_dir, source=str(bundle.source)))
        stack.pop()

        loaded.add(bundle_path)
        ordered.append(bundle)

    visit(find_bundle_file(path))
    return ordered, external


def load_composed(path: str | Path, *, policy: str | None = None) -> ComposedBundle:
    """Load a bundle tree and compose it into a single view.

    Raises:
        ConfigurationError: On any invalid file, reference or conflicting record.
    """
    start_trace()
    resolver = IncludeResolver()
    bundles, external = collect_bundles(path, resolver)
    root = bundles[-1]
    set_bundle_context(root.name)

    composed = compose_bundles(bundles, policy=policy, name=root.name)
    composed.external_includes = external

    for bundle in bundles:
        source = str(bundle.source)
        for reference in bundle.agents:
            agent = load_agent(resolver.resolve_agent(reference, bundle.base_dir, source=source))
            if agent.name in composed.agents and composed.agents[agent.name] != agent:
                logger.warning("Agent %s redefined by bundle %s", agent.name, bundle.name)
            composed.agents[agent.name] = agent
        for reference in bundle.context:
            context_path = resolver.resolve_context(reference, bundle.base_dir, source=source)
            if context_path not in composed.context_files:
                composed.context_files.append(context_path)

    logger.info(
        "Composed bundle %s from %d bundle(s): languages=%s",
        composed.name,
        len(composed.bundles),
        ", ".join(sorted(composed.languages)) or "none",
    )
    return composed
