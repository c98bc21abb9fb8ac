"""Unit tests for CLI main module."""

import json
from pathlib import Path
import re

import pytest
from typer.testing import CliRunner

from arbiter import __version__
from arbiter.cli.commands.overrides import DEFAULT_OUTPUT_PATH, expand_home
from arbiter.cli.main import app
from arbiter.routing.matrix import MODEL_MATRIX

runner = CliRunner()


def clean(output: str) -> str:
    """Strip ANSI codes (Rich adds color formatting)."""
    return re.sub(r"\x1b\[[0-9;]*m", "", output)


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run commands from an empty directory with HOME pointing inside it."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    return tmp_path


class TestMainApp:
    """Tests for the main Typer application."""

    def test_app_has_help(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Arbiter" in result.output
        assert "init-overrides" in result.output
        assert "matrix" in result.output

    @pytest.mark.parametrize("flag", ["--version", "-V"])
    def test_app_version_option(self, flag: str) -> None:
        result = runner.invoke(app, [flag])
        assert result.exit_code == 0
        assert __version__ in clean(result.output)

    def test_no_args_shows_help(self) -> None:
        """no_args_is_help exits with code 2."""
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "Arbiter" in result.output


class TestInitOverrides:
    """Tests for the init-overrides command."""

    def test_writes_default_file(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init-overrides"])

        assert result.exit_code == 0
        assert "Wrote override template" in clean(result.output)
        payload = json.loads((workdir / DEFAULT_OUTPUT_PATH).read_text())
        assert set(payload["matrixOverrides"]) == set(MODEL_MATRIX)
        assert payload["matrixOverrides"]["glm-5"] == {"code": 5, "text": 5}

    def test_file_format(self, workdir: Path) -> None:
        """Two-space indentation and a trailing newline."""
        runner.invoke(app, ["init-overrides", "out.json", "--empty"])

        assert (workdir / "out.json").read_text() == '{\n  "matrixOverrides": {}\n}\n'

    def test_stdout(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init-overrides", "--stdout", "--empty"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"matrixOverrides": {}}
        assert not (workdir / DEFAULT_OUTPUT_PATH).exists()

    def test_refuses_to_overwrite(self, workdir: Path) -> None:
        target = workdir / "existing.json"
        target.write_text("keep me")

        result = runner.invoke(app, ["init-overrides", "existing.json"])

        assert result.exit_code == 1
        assert "Refusing to overwrite" in clean(result.output)
        assert target.read_text() == "keep me"

    def test_force_overwrites(self, workdir: Path) -> None:
        target = workdir / "existing.json"
        target.write_text("old")

        result = runner.invoke(app, ["init-overrides", "existing.json", "--force"])

        assert result.exit_code == 0
        assert "matrixOverrides" in json.loads(target.read_text())

    def test_creates_parent_directories(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init-overrides", "a/b/c.json", "--empty"])

        assert result.exit_code == 0
        assert (workdir / "a" / "b" / "c.json").exists()

    def test_expands_home(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init-overrides", "~/cfg/overrides.json", "--empty"])

        assert result.exit_code == 0
        assert (workdir / "home" / "cfg" / "overrides.json").exists()

    def test_unknown_option(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init-overrides", "--bogus"])

        assert result.exit_code == 1
        assert "Unknown option" in clean(result.output)
        assert not (workdir / DEFAULT_OUTPUT_PATH).exists()

    def test_too_many_paths(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init-overrides", "one.json", "two.json"])

        assert result.exit_code == 1
        assert "Too many positional arguments" in clean(result.output)

    def test_generate_overrides_alias(self, workdir: Path) -> None:
        result = runner.invoke(app, ["generate-overrides", "alias.json", "--empty"])

        assert result.exit_code == 0
        assert json.loads((workdir / "alias.json").read_text()) == {"matrixOverrides": {}}


class TestExpandHome:
    """Tests for expand_home."""

    def test_expansion(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/home/dev")

        assert expand_home("~") == "/home/dev"
        assert expand_home("~/x.json") == str(Path("/home/dev") / "x.json")
        assert expand_home("~other/x.json") == "~other/x.json"
        assert expand_home("rel/x.json") == "rel/x.json"

    def test_no_home(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("HOME", raising=False)

        assert expand_home("~/x.json") == "~/x.json"


class TestMatrixShow:
    """Tests for the matrix show command."""

    def test_full_matrix(self) -> None:
        result = runner.invoke(app, ["matrix", "show"])

        assert result.exit_code == 0
        assert "glm-5" in clean(result.output)

    def test_single_model(self) -> None:
        result = runner.invoke(app, ["matrix", "show", "zai/glm-5"])

        output = clean(result.output)
        assert result.exit_code == 0
        assert "5 (arena 1456)" in output
        assert "Vision" in output

    def test_unknown_model(self) -> None:
        result = runner.invoke(app, ["matrix", "show", "mystery-model"])

        assert result.exit_code == 1
        assert "Model not found" in clean(result.output)

    def test_with_overrides_file(self, tmp_path: Path) -> None:
        overrides = tmp_path / "overrides.json"
        overrides.write_text(json.dumps({"matrixOverrides": {"mystery-model": {"text": 2}}}))

        result = runner.invoke(app, ["matrix", "show", "mystery-model", "-o", str(overrides)])

        assert result.exit_code == 0
        assert "2" in clean(result.output)

    def test_invalid_overrides_file(self, tmp_path: Path) -> None:
        overrides = tmp_path / "overrides.json"
        overrides.write_text("[1, 2]")

        result = runner.invoke(app, ["matrix", "show", "-o", str(overrides)])

        assert result.exit_code == 1
        assert "Invalid overrides file" in clean(result.output)
