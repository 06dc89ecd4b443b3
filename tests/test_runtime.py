"""Tests for the osascript runtime and backend selection."""

import subprocess

import pytest

from engine.descriptors import Descriptor, marshal
from engine.errors import ERROR_MESSAGE, ERROR_NUMBER, ScriptRuntimeError, UnsupportedParameterKind
from engine.runtime import (
    CompiledScript,
    OsascriptRuntime,
    create_runtime,
    parse_osa_error,
    render_literal,
)
from orchestrator.config import ConfigManager


class TestParseOsaError:
    def test_execution_error(self):
        payload = parse_osa_error("program.scpt: execution error: Cannot find image data for Fun House (502)\n")
        assert payload == {ERROR_MESSAGE: "Cannot find image data for Fun House", ERROR_NUMBER: 502}

    def test_script_error_negative_number(self):
        payload = parse_osa_error("program.applescript:10:17: script error: Expected end of line. (-2741)")
        assert payload[ERROR_MESSAGE] == "Expected end of line."
        assert payload[ERROR_NUMBER] == -2741

    def test_unrecognized_text_kept_as_message(self):
        assert parse_osa_error("something odd") == {ERROR_MESSAGE: "something odd"}

    def test_empty(self):
        assert parse_osa_error("") == {}
        assert parse_osa_error(None) == {}


class TestRenderLiteral:
    def test_text_escaped(self):
        assert render_literal(Descriptor("utxt", 'say "hi"')) == '"say \\"hi\\""'

    def test_booleans(self):
        assert render_literal(Descriptor("bool", True)) == "true"
        assert render_literal(Descriptor("bool", False)) == "false"

    def test_image_data(self):
        assert render_literal(Descriptor("tdta", b"\x89PN")) == "«data tdta89504E»"

    def test_unknown_type(self):
        with pytest.raises(UnsupportedParameterKind):
            render_literal(Descriptor("long", 3))


class FakeRun:
    """Stand-in for subprocess.run that records commands"""

    def __init__(self, returncode=0, stdout="true\n", stderr=""):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.commands = []
        self.inputs = []

    def __call__(self, cmd, input=None, **kwargs):
        self.commands.append(cmd)
        self.inputs.append(input)
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


class TestOsascriptRuntime:
    def test_compile_writes_source(self, monkeypatch):
        fake = FakeRun(stdout="")
        monkeypatch.setattr(subprocess, "run", fake)
        runtime = OsascriptRuntime()

        handle = runtime.compile("return true")
        try:
            assert fake.commands[0][:3] == ["osacompile", "-o", str(handle.path)]
            source_path = fake.commands[0][3]
            with open(source_path, encoding="utf-8") as f:
                assert f.read() == "return true"
        finally:
            runtime.release(handle)
        assert not handle.workdir.exists()

    def test_compile_failure_raises_payload(self, monkeypatch):
        monkeypatch.setattr(subprocess, "run", FakeRun(
            returncode=1, stdout="", stderr="x.applescript:1:5: script error: Expected expression. (-2740)"
        ))
        with pytest.raises(ScriptRuntimeError) as excinfo:
            OsascriptRuntime().compile("on (")
        assert excinfo.value.payload[ERROR_NUMBER] == -2740

    def test_execute(self, monkeypatch, tmp_path):
        fake = FakeRun(stdout="true\n")
        monkeypatch.setattr(subprocess, "run", fake)
        handle = CompiledScript(path=tmp_path / "program.scpt", workdir=tmp_path)
        assert OsascriptRuntime(osascript_path="/usr/bin/osascript").execute(handle) is True
        assert fake.commands == [["/usr/bin/osascript", str(handle.path)]]

    def test_execute_handler_sends_wrapper(self, monkeypatch, tmp_path):
        fake = FakeRun(stdout="false")
        monkeypatch.setattr(subprocess, "run", fake)
        handle = CompiledScript(path=tmp_path / "program.scpt", workdir=tmp_path)

        result = OsascriptRuntime().execute_handler(
            handle, "fixArtwork", marshal(["The Stooges Fun House", "Fun House", "The Stooges", True])
        )

        assert result is False
        assert fake.commands == [["osascript", "-"]]
        program = fake.inputs[0]
        assert f'load script (POSIX file "{handle.path}")' in program
        assert 'return fixArtwork("The Stooges Fun House", "Fun House", "The Stooges", true)' in program

    def test_handler_name_validated(self, tmp_path):
        handle = CompiledScript(path=tmp_path / "p.scpt", workdir=tmp_path)
        with pytest.raises(ValueError):
            OsascriptRuntime().handler_program(handle, 'x() & do shell script "rm"', [])

    def test_missing_tool(self, monkeypatch):
        def missing(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])
        monkeypatch.setattr(subprocess, "run", missing)
        with pytest.raises(ScriptRuntimeError) as excinfo:
            OsascriptRuntime()._call(["osascript", "-e", "return true"])
        assert "not found" in excinfo.value.payload[ERROR_MESSAGE]

    def test_timeout(self, monkeypatch):
        def slow(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))
        monkeypatch.setattr(subprocess, "run", slow)
        with pytest.raises(ScriptRuntimeError) as excinfo:
            OsascriptRuntime(timeout=2)._call(["osascript", "-"])
        assert "timed out" in str(excinfo.value)


class TestCreateRuntime:
    def test_default_is_osascript(self):
        runtime = create_runtime(ConfigManager(None))
        assert isinstance(runtime, OsascriptRuntime)
        assert runtime.timeout is None

    def test_configured_paths(self):
        config = ConfigManager(None)
        config.set('runtime.osascript_path', '/opt/bin/osascript')
        config.set('runtime.timeout', 15)
        runtime = create_runtime(config)
        assert runtime.osascript_path == '/opt/bin/osascript'
        assert runtime.timeout == 15

    def test_unknown_backend(self):
        config = ConfigManager(None)
        config.set('runtime.backend', 'jxa')
        with pytest.raises(ValueError):
            create_runtime(config)
