from collections.abc import Callable, Generator
from pathlib import Path
from textwrap import dedent

import pytest

import lsp_typescript_bundle.config.settings as settings_mod
from lsp_typescript_bundle.bundle.assets import load_default_bundle
from lsp_typescript_bundle.languages import clear_language_cache

_SETTINGS_KEYS = (
    "LSP_BUNDLE_LOGGING_MODE",
    "LSP_BUNDLE_LOGGING",
    "LSP_BUNDLE_LOG_REDACT",
    "LOG_PATH",
    "COMPOSE_POLICY",
    "STRICT_EXTENSIONS",
)

TYPESCRIPT_RECORD = """\
typescript:
  extensions: [".ts", ".tsx"]
  workspace_markers: ["tsconfig.json", "package.json"]
  server:
    command: ["typescript-language-server", "--stdio"]
"""


@pytest.fixture(autouse=True)
def mock_log_path(tmp_path: Path) -> Generator[Path, None, None]:
    """Enable safe-mode event logging into tmp_path and restore settings afterwards."""
    snapshot = {k: getattr(settings_mod, k) for k in _SETTINGS_KEYS}
    log_file = tmp_path / "events.jsonl"
    settings_mod.LSP_BUNDLE_LOGGING_MODE = "safe"
    settings_mod.LSP_BUNDLE_LOGGING = True
    settings_mod.LSP_BUNDLE_LOG_REDACT = True
    settings_mod.LOG_PATH = log_file
    settings_mod.COMPOSE_POLICY = "override"
    settings_mod.STRICT_EXTENSIONS = True
    yield log_file
    for k, v in snapshot.items():
        setattr(settings_mod, k, v)


@pytest.fixture(autouse=True)
def _clear_caches() -> Generator[None, None, None]:
    clear_language_cache()
    yield
    clear_language_cache()
    load_default_bundle.cache_clear()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for var in [
        "LSP_BUNDLE_LOGGING",
        "LSP_BUNDLE_LOG_PATH",
        "LSP_BUNDLE_COMPOSE_POLICY",
        "LSP_BUNDLE_STRICT_EXTENSIONS",
    ]:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write dedented text to a path relative to tmp_path, creating parents."""

    def _write(relative: str, text: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(text), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def behavior_yaml() -> Callable[..., str]:
    """Build a behavior document declaring the given language records."""

    def _build(name: str, records: str = TYPESCRIPT_RECORD, extra: str = "") -> str:
        indented = "".join(f"        {line}\n" for line in dedent(records).splitlines())
        return (
            f"bundle:\n  name: {name}\n  version: 1.0.0\n"
            "tools:\n"
            "  - module: tool-lsp\n"
            "    config:\n"
            "      languages:\n"
            f"{indented}"
            f"{dedent(extra)}"
        )

    return _build
