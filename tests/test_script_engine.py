"""Tests for the script engine state machine and serialization."""

import threading

import pytest

from engine.errors import (
    ERROR_MESSAGE,
    ERROR_NUMBER,
    CompileError,
    EngineStateError,
    ExecuteError,
    InvalidHandlerName,
    UnsupportedParameterKind,
)
from engine.script_engine import EngineState, ScriptEngine
from scripting.templates import FIX_ALBUM_ARTWORK_DEFINITION, FIX_ARTWORK_HANDLER, DriverFailure
from tests.conftest import FakeRuntime


@pytest.fixture
def engine(runtime):
    return ScriptEngine.compiled(runtime, FIX_ALBUM_ARTWORK_DEFINITION)


class TestCompile:
    def test_ready_after_compile(self, runtime):
        engine = ScriptEngine(runtime)
        assert engine.state is EngineState.UNINITIALIZED
        engine.compile(FIX_ALBUM_ARTWORK_DEFINITION)
        assert engine.state is EngineState.READY
        assert runtime.sources == [FIX_ALBUM_ARTWORK_DEFINITION]

    def test_compile_error_with_message(self):
        runtime = FakeRuntime(compile_error={ERROR_MESSAGE: "Expected end of line but found identifier."})
        engine = ScriptEngine(runtime)
        with pytest.raises(CompileError) as excinfo:
            engine.compile("on broken(")
        assert excinfo.value.message == "Expected end of line but found identifier."
        assert excinfo.value.description.startswith("AppleScript Compilation Error: ")
        assert engine.state is EngineState.FAILED
        assert engine.failure is excinfo.value

    def test_compile_error_without_message(self):
        engine = ScriptEngine(FakeRuntime(compile_error={}))
        with pytest.raises(CompileError) as excinfo:
            engine.compile("x")
        assert excinfo.value.unknown
        assert excinfo.value.description == "Unknown AppleScript Compilation Error"

    def test_failed_engine_is_terminal(self):
        engine = ScriptEngine(FakeRuntime(compile_error={}))
        with pytest.raises(CompileError):
            engine.compile("x")
        with pytest.raises(EngineStateError):
            engine.run()
        with pytest.raises(EngineStateError):
            engine.compile(FIX_ALBUM_ARTWORK_DEFINITION)

    def test_runtime_fault_marks_failed(self):
        class UnwritableRuntime(FakeRuntime):
            def compile(self, source):
                raise PermissionError("cannot create temporary directory")

        engine = ScriptEngine(UnwritableRuntime())
        with pytest.raises(PermissionError):
            engine.compile(FIX_ALBUM_ARTWORK_DEFINITION)
        assert engine.state is EngineState.FAILED
        assert engine.failure.message == "cannot create temporary directory"
        with pytest.raises(EngineStateError):
            engine.run()

    def test_compile_twice(self, engine, runtime):
        with pytest.raises(EngineStateError):
            engine.compile(FIX_ALBUM_ARTWORK_DEFINITION)
        assert len(runtime.sources) == 1
        assert engine.state is EngineState.READY


class TestRun:
    def test_run_returns_result(self, engine, runtime):
        assert engine.run() is True
        assert runtime.runs == 1

    def test_run_before_compile(self, runtime):
        with pytest.raises(EngineStateError):
            ScriptEngine(runtime).run()
        assert runtime.runs == 0

    def test_run_error_decoded(self):
        runtime = FakeRuntime(run_error={ERROR_MESSAGE: "no such window", ERROR_NUMBER: -1728})
        engine = ScriptEngine.compiled(runtime, "return true")
        with pytest.raises(ExecuteError) as excinfo:
            engine.run()
        assert excinfo.value.message == "no such window"
        assert excinfo.value.number == -1728
        assert excinfo.value.description == "AppleScript Execution Error: no such window"
        # Execution errors leave the engine usable
        assert engine.state is EngineState.READY

    def test_run_error_without_message(self):
        engine = ScriptEngine.compiled(FakeRuntime(run_error={}), "return true")
        with pytest.raises(ExecuteError) as excinfo:
            engine.run()
        assert excinfo.value.unknown
        assert excinfo.value.description == "Unknown AppleScript Execution Error"


class TestInvoke:
    def test_invoke_marshals_in_order(self, engine, runtime):
        assert engine.invoke(FIX_ARTWORK_HANDLER, ["The Stooges Fun House", "Fun House", "The Stooges", False])
        handler, descriptors = runtime.calls[0]
        assert handler == FIX_ARTWORK_HANDLER
        assert [d.type_code for d in descriptors] == ["utxt", "utxt", "utxt", "bool"]
        assert [d.value for d in descriptors] == ["The Stooges Fun House", "Fun House", "The Stooges", False]

    def test_unsupported_parameter_never_reaches_runtime(self, engine, runtime):
        with pytest.raises(UnsupportedParameterKind):
            engine.invoke(FIX_ARTWORK_HANDLER, ["Fun House", 3])
        assert runtime.calls == []

    def test_invalid_handler_name_never_reaches_runtime(self, engine, runtime):
        with pytest.raises(InvalidHandlerName) as excinfo:
            engine.invoke('fixArtwork() & do shell script "ls"', ["x"])
        assert isinstance(excinfo.value, ValueError)
        assert runtime.calls == []

    def test_invoke_error_decoded(self, engine, runtime):
        runtime.fail("The Stooges Fun House", message="Cannot find image data", number=502)
        with pytest.raises(ExecuteError) as excinfo:
            engine.invoke(FIX_ARTWORK_HANDLER, ["The Stooges Fun House", "Fun House", "The Stooges", False])
        error = excinfo.value
        assert error.handler == FIX_ARTWORK_HANDLER
        assert error.failure is DriverFailure.NO_IMAGE_FOUND
        assert error.description == "AppleScript Event Execution Error: Cannot find image data"

    def test_invoke_error_without_message(self, engine, runtime):
        runtime.fail("x", message=None, number=None)
        with pytest.raises(ExecuteError) as excinfo:
            engine.invoke(FIX_ARTWORK_HANDLER, ["x", "x", "", True])
        assert excinfo.value.description == "Unknown AppleScript Event Execution Error"
        assert excinfo.value.failure is None

    def test_engine_usable_after_invoke_error(self, engine, runtime):
        runtime.fail("bad")
        with pytest.raises(ExecuteError):
            engine.invoke(FIX_ARTWORK_HANDLER, ["bad", "bad", "", True])
        assert engine.invoke(FIX_ARTWORK_HANDLER, ["good", "good", "", True]) is True


class TestSerialization:
    def test_concurrent_invocations_never_overlap(self):
        runtime = FakeRuntime(delay=0.005)
        engine = ScriptEngine.compiled(runtime, FIX_ALBUM_ARTWORK_DEFINITION)
        errors = []

        def worker(n):
            try:
                for i in range(5):
                    engine.invoke(FIX_ARTWORK_HANDLER, [f"album {n}-{i}", "a", "", True])
                engine.run()
            except Exception as e:  # surfaced by the assertion below
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(runtime.calls) == 30
        assert runtime.runs == 6
        assert runtime.overlaps == 0


class TestClose:
    def test_close_releases_handle(self, engine, runtime):
        engine.close()
        assert runtime.released == [1]
        assert engine.state is EngineState.CLOSED
        with pytest.raises(EngineStateError):
            engine.run()

    def test_context_manager(self, runtime):
        with ScriptEngine.compiled(runtime, FIX_ALBUM_ARTWORK_DEFINITION) as engine:
            engine.run()
        assert runtime.released == [1]

    def test_close_is_idempotent(self, engine, runtime):
        engine.close()
        engine.close()
        assert runtime.released == [1]
