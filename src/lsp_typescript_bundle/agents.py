"""Agent persona definitions (markdown with a `meta:` frontmatter block)."""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .documents import parse_frontmatter
from .errors import ConfigurationError
from .languages.operations import LSP_OPERATIONS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentDefinition:
    name: str
    description: str
    instructions: str
    source: Path | None = None


def agent_from_text(text: str, *, source: str | Path | None = None) -> AgentDefinition:
    """Parse an agent markdown document.

    Raises:
        ConfigurationError: If `meta.name` is missing or the body is empty.
    """
    source_str = str(source) if source is not None else None
    meta, body = parse_frontmatter(text, source=source_str)

    header = meta.get("meta")
    if not isinstance(header, Mapping):
        raise ConfigurationError("is required", source=source_str, field="meta")
    name = header.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError("is required", source=source_str, field="meta.name")
    if not body.strip():
        raise ConfigurationError("agent instructions are empty", source=source_str)

    return AgentDefinition(
        name=name.strip(),
        description=str(header.get("description") or "").strip(),
        instructions=body.strip(),
        source=Path(source) if source is not None else None,
    )


def load_agent(path: str | Path) -> AgentDefinition:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read file: {exc}", source=str(path)) from exc
    agent = agent_from_text(text, source=path)
    logger.debug("Loaded agent %s from %s", agent.name, path)
    return agent


def referenced_operations(agent: AgentDefinition) -> tuple[str, ...]:
    """Return the LSP operations named in the agent's instructions, in canonical order."""
    text = f"{agent.description}\n{agent.instructions}"
    return tuple(op for op in LSP_OPERATIONS if re.search(rf"\b{re.escape(op)}\b", text))
