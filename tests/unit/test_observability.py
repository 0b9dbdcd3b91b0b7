import json
from pathlib import Path

import pytest

import lsp_typescript_bundle.config.settings as settings_mod
from lsp_typescript_bundle.config.settings import reload_settings
from lsp_typescript_bundle.logging import log_language_override
from lsp_typescript_bundle.bundle import bundle_root, load_composed
from lsp_typescript_bundle.observability import clear_context, log_event, start_trace


def _read(log_path: Path) -> list[dict]:
    return [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]


class TestLogEvent:
    def test_enriches_event(self, mock_log_path: Path) -> None:
        clear_context()
        log_event({"kind": "bundle_loaded", "bundle": "x"})
        (event,) = _read(mock_log_path)
        assert event["level"] == "info"
        assert event["trace_id"].startswith("b-")
        assert "timestamp" in event

    def test_error_kinds_default_to_error_level(self, mock_log_path: Path) -> None:
        log_event({"kind": "bundle_config_error"})
        assert _read(mock_log_path)[0]["level"] == "error"

    def test_disabled_logging_writes_nothing(self, mock_log_path: Path) -> None:
        settings_mod.LSP_BUNDLE_LOGGING = False
        log_event({"kind": "bundle_loaded"})
        assert not mock_log_path.exists()

    def test_safe_mode_redacts_commands(self, mock_log_path: Path) -> None:
        log_language_override("typescript", "a", "b", ["/home/me/bin/tsls", "--stdio"])
        (event,) = _read(mock_log_path)
        assert event["language_id"] == "typescript"
        assert all(part.startswith("[REDACTED len=") for part in event["command"])

    def test_full_mode_keeps_values(self, mock_log_path: Path) -> None:
        settings_mod.LSP_BUNDLE_LOG_REDACT = False
        log_language_override("typescript", "a", "b", ["tsls", "--stdio"])
        assert _read(mock_log_path)[0]["command"] == ["tsls", "--stdio"]

    def test_directory_log_path_is_skipped(self, tmp_path: Path) -> None:
        settings_mod.LOG_PATH = tmp_path
        log_event({"kind": "bundle_loaded"})
        assert list(tmp_path.iterdir()) == []

    def test_rotates_large_log(self, mock_log_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings_mod, "MAX_LOG_SIZE_BYTES", 10)
        mock_log_path.write_text("x" * 100, encoding="utf-8")
        log_event({"kind": "bundle_loaded"})
        rotated = list(mock_log_path.parent.glob("events.*.jsonl"))
        assert len(rotated) == 1
        assert len(_read(mock_log_path)) == 1


class TestReloadSettings:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("LSP_BUNDLE_LOGGING", "full")
        monkeypatch.setenv("LSP_BUNDLE_LOG_PATH", str(tmp_path / "custom.jsonl"))
        monkeypatch.setenv("LSP_BUNDLE_COMPOSE_POLICY", "error")
        monkeypatch.setenv("LSP_BUNDLE_STRICT_EXTENSIONS", "false")
        reload_settings()

        assert settings_mod.LSP_BUNDLE_LOGGING is True
        assert settings_mod.LSP_BUNDLE_LOG_REDACT is False
        assert settings_mod.LOG_PATH == tmp_path / "custom.jsonl"
        assert settings_mod.COMPOSE_POLICY == "error"
        assert settings_mod.STRICT_EXTENSIONS is False

    def test_defaults(self, clean_env: None) -> None:
        reload_settings()
        assert settings_mod.LSP_BUNDLE_LOGGING is False
        assert settings_mod.LSP_BUNDLE_LOG_REDACT is True
        assert settings_mod.LOG_PATH == settings_mod.LOG_DIR / "events.jsonl"
        assert settings_mod.COMPOSE_POLICY == "override"
        assert settings_mod.STRICT_EXTENSIONS is True

    def test_unknown_policy_falls_back(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LSP_BUNDLE_COMPOSE_POLICY", "merge")
        reload_settings()
        assert settings_mod.COMPOSE_POLICY == "override"


class TestTraceContext:
    def test_explicit_trace_id(self, mock_log_path: Path) -> None:
        start_trace("b-0123456789ab")
        log_event({"kind": "bundle_loaded"})
        assert _read(mock_log_path)[0]["trace_id"] == "b-0123456789ab"

    def test_each_composed_load_gets_its_own_trace(self, mock_log_path: Path) -> None:
        load_composed(bundle_root())
        load_composed(bundle_root())

        loaded = [e for e in _read(mock_log_path) if e["kind"] == "bundle_loaded"]
        assert len(loaded) == 4
        first = {e["trace_id"] for e in loaded[:2]}
        second = {e["trace_id"] for e in loaded[2:]}
        assert len(first) == 1
        assert len(second) == 1
        assert first != second
