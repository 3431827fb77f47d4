"""命令行测试."""

import pytest
from typer.testing import CliRunner

from vocalog import __version__
from vocalog.cli import app
from vocalog.marker import CrashMarker

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("VOCALOG_LOG_FOLDER", "VOCALOG_CRASH_MARKER_FILE_NAME", "VOCALOG_MAIN_LOG_FILE_NAME"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def folder(tmp_path):
    folder = tmp_path / "logs"
    folder.mkdir()
    (folder / "Main.log").write_text("current\n", encoding="utf-8")
    (folder / "Main.log.1").write_text("previous\n", encoding="utf-8")
    return folder


class TestStatus:
    def test_missing_folder(self, tmp_path):
        result = runner.invoke(app, ["status", str(tmp_path / "nope")])
        assert result.exit_code == 1

    def test_lists_generations_without_marker(self, folder):
        result = runner.invoke(app, ["status", str(folder)])
        assert result.exit_code == 0
        assert "Main.log.1" in result.output
        assert "没有崩溃标记" in result.output

    def test_marker_is_peeked_not_consumed(self, folder):
        CrashMarker(folder / "CrashMarker.txt").write_new("v9")

        result = runner.invoke(app, ["status", str(folder)])
        assert result.exit_code == 0
        assert "v9" in result.output
        assert (folder / "CrashMarker.txt").exists()

    def test_default_folder_from_env(self, folder, monkeypatch):
        monkeypatch.setenv("VOCALOG_LOG_FOLDER", str(folder))
        result = runner.invoke(app, ["status"])
        assert result.exit_code == 0
        assert "Main.log.1" in result.output


class TestRoll:
    def test_roll(self, folder):
        result = runner.invoke(app, ["roll", str(folder / "Main.log"), "--retain", "2"])
        assert result.exit_code == 0
        assert not (folder / "Main.log").exists()
        assert (folder / "Main.log.1").read_text(encoding="utf-8") == "current\n"
        assert (folder / "Main.log.2").read_text(encoding="utf-8") == "previous\n"

    def test_negative_retain_rejected(self, folder):
        result = runner.invoke(app, ["roll", str(folder / "Main.log"), "--retain", "-1"])
        assert result.exit_code != 0
        assert (folder / "Main.log").exists()


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output
