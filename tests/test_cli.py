"""Tests for the command line interface."""

import pytest
import yaml

import cli
from orchestrator.clipboard import MemoryClipboard
from scripting.record import ArtistAlbum, CompilationAlbum
from tests.conftest import FakeRuntime


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "missing-art.yaml"
    path.write_text("clipboard:\n  backend: memory\n", encoding="utf-8")
    return str(path)


def test_script_to_stdout(config_file, capsys):
    code = cli.main(["--config", config_file, "script", "--album", "Fun House", "--artist", "The Stooges"])
    out = capsys.readouterr().out
    assert code == 0
    assert "on verify_track_The_Stooges_Fun_House(trk)" in out
    assert 'fixAlbumArtwork("The Stooges Fun House", verify_track_The_Stooges_Fun_House, findPartialImage)' in out
    assert out.endswith("return true\n")


def test_script_no_guard_full_mode(config_file, capsys):
    cli.main(["--config", config_file, "script", "--album", "Hits", "--mode", "full", "--no-guard"])
    out = capsys.readouterr().out
    assert 'fixAlbumArtwork("Hits", verify_track_Hits, clipboardImage)\n' in out
    assert "\ntry\n" not in out


def test_script_to_file(config_file, tmp_path, capsys):
    output = tmp_path / "fix.applescript"
    code = cli.main(["--config", config_file, "script", "--album", "Hits", "--output", str(output)])
    assert code == 0
    assert output.read_text(encoding="utf-8").endswith("return true\n")
    assert "saved to" in capsys.readouterr().out


def test_records_file(tmp_path):
    path = tmp_path / "records.yaml"
    path.write_text(yaml.safe_dump({"records": [
        {"artist": "The Stooges", "album": "Fun House"},
        {"album": "Beleza Tropical", "compilation": True},
    ]}), encoding="utf-8")
    assert cli.load_records_file(str(path)) == [
        ArtistAlbum("The Stooges", "Fun House"),
        CompilationAlbum("Beleza Tropical"),
    ]


def test_no_records_is_error(config_file, capsys):
    assert cli.main(["--config", config_file, "script"]) == 1
    assert "No records selected" in capsys.readouterr().err


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_fix_reports_failures(config_file, monkeypatch, capsys):
    runtime = FakeRuntime()
    runtime.fail("Hits", "Cannot find Hits", 501)

    from orchestrator import orchestrator as orchestrator_module
    monkeypatch.setattr(orchestrator_module, "create_runtime", lambda config: runtime)

    code = cli.main(["--config", config_file, "fix", "--album", "Hits"])
    captured = capsys.readouterr()
    assert code == 1
    assert "Failed: 1" in captured.out
    assert "Unable to change Music artwork image for Hits" in captured.err
    assert "Try running as an AppleScript" in captured.err


def test_fix_load_failure(config_file, monkeypatch, capsys):
    from orchestrator import orchestrator as orchestrator_module
    monkeypatch.setattr(orchestrator_module, "create_runtime", lambda config: FakeRuntime(compile_error={}))

    assert cli.main(["--config", config_file, "fix", "--album", "Hits"]) == 1
    assert "AppleScript Initialization Error" in capsys.readouterr().err


def test_copy_script(config_file, monkeypatch, capsys):
    clipboard = MemoryClipboard()
    from orchestrator import orchestrator as orchestrator_module
    monkeypatch.setattr(orchestrator_module, "create_clipboard", lambda config: clipboard)

    assert cli.main(["--config", config_file, "script", "--album", "Hits", "--copy"]) == 0
    assert clipboard.text.endswith("return true\n")
