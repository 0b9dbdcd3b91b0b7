from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from lsp_typescript_bundle.bundle import bundle_root, load_composed
from lsp_typescript_bundle.cli import main


@pytest.fixture
def runner(clean_env: None) -> CliRunner:
    return CliRunner()


class TestValidateCommand:
    def test_packaged_bundle_is_valid(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["validate", str(bundle_root())])
        assert result.exit_code == 0, result.output
        assert "Bundle lsp-typescript: OK" in result.output
        assert "javascript, typescript" in result.output
        assert "typescript-code-intel" in result.output
        assert "(not fetched)" in result.output

    def test_invalid_bundle_exits_nonzero(self, runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text(
            "bundle: {name: broken}\n"
            "languages:\n"
            "  typescript:\n"
            "    extensions: ['.ts']\n"
            "    workspace_markers: [tsconfig.json]\n"
            "    server: {command: []}\n",
            encoding="utf-8",
        )
        result = runner.invoke(main, ["validate", str(path)])
        assert result.exit_code == 1
        assert "Configuration error" in result.output
        assert "languages.typescript.server.command" in result.output

    def test_error_policy_option(self, runner: CliRunner, tmp_path: Path) -> None:
        record = (
            "  typescript:\n"
            "    extensions: ['.ts']\n"
            "    workspace_markers: [tsconfig.json]\n"
            "    server: {command: [%s]}\n"
        )
        (tmp_path / "base.yaml").write_text(
            "bundle: {name: base}\nlanguages:\n" + record % "tsls", encoding="utf-8"
        )
        top = tmp_path / "top.yaml"
        top.write_text(
            "bundle: {name: top}\nincludes: [base.yaml]\nlanguages:\n" + record % "other",
            encoding="utf-8",
        )

        assert runner.invoke(main, ["validate", str(top)]).exit_code == 0
        result = runner.invoke(main, ["validate", "--policy", "error", str(top)])
        assert result.exit_code == 1
        assert "declared differently" in result.output


class TestShowCommand:
    def test_prints_composed_records(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["show"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        assert set(data["languages"]) == {"typescript", "javascript"}
        assert data["languages"]["typescript"]["server"]["command"] == [
            "typescript-language-server",
            "--stdio",
        ]

    def test_policy_applies_to_packaged_bundle(self, runner: CliRunner) -> None:
        with patch("lsp_typescript_bundle.cli.load_composed", wraps=load_composed) as loader:
            result = runner.invoke(main, ["show", "--policy", "error"])
        assert result.exit_code == 0, result.output
        loader.assert_called_once_with(bundle_root(), policy="error")


class TestRootCommand:
    def test_prints_language_and_root(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "app" / "src").mkdir(parents=True)
        (tmp_path / "app" / "tsconfig.json").write_text("{}")
        target = tmp_path / "app" / "src" / "View.tsx"

        result = runner.invoke(main, ["root", str(target)])
        assert result.exit_code == 0, result.output
        assert result.output.strip() == f"typescriptreact\t{(tmp_path / 'app').resolve()}"

    def test_unconfigured_file(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["root", str(tmp_path / "main.py")])
        assert result.exit_code == 1
        assert "No language configured" in result.output


class TestDoctorCommand:
    def test_reports_missing_server(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("shutil.which", lambda cmd: None)
        result = runner.invoke(main, ["doctor"])
        assert result.exit_code == 1
        assert "[missing] typescript: typescript-language-server not found on PATH" in result.output
        assert "install: npm install -g typescript-language-server typescript" in result.output

    def test_all_servers_present(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("shutil.which", lambda cmd: f"/usr/bin/{cmd}")
        result = runner.invoke(main, ["doctor"])
        assert result.exit_code == 0
        assert "[ok]      javascript: typescript-language-server" in result.output
