#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Script engine - the compile/execute bridge.

Owns exactly one compiled program. Every call into the runtime (compile,
run, invoke) happens under one lock, so at most one call is in flight per
engine no matter how many threads share it.

    Uninitialized --compile--> Ready
    Uninitialized --compile--> Failed   (terminal; build a new engine)
"""

import threading
from enum import Enum
from typing import Any, Optional, Sequence

from scripting.sanitizer import is_identifier

from .descriptors import marshal
from .errors import (
    CompileError,
    EngineStateError,
    InvalidHandlerName,
    ScriptRuntimeError,
    decode_compile_error,
    decode_execute_error,
)
from .runtime import ScriptRuntime


class EngineState(Enum):
    """Script engine lifecycle"""
    UNINITIALIZED = "uninitialized"
    COMPILING = "compiling"
    READY = "ready"
    FAILED = "failed"
    CLOSED = "closed"


class ScriptEngine:
    """
    Serialized access to one compiled AppleScript program.

    Usage:
        engine = ScriptEngine(OsascriptRuntime())
        engine.compile(FIX_ALBUM_ARTWORK_DEFINITION)
        engine.invoke('fixArtwork', ['Fun House', 'Fun House', 'The Stooges', True])
    """

    def __init__(self, runtime: ScriptRuntime):
        self.runtime = runtime
        self._lock = threading.Lock()
        self._state = EngineState.UNINITIALIZED
        self._handle: Any = None
        self._failure: Optional[CompileError] = None

    @classmethod
    def compiled(cls, runtime: ScriptRuntime, source: str) -> 'ScriptEngine':
        """Create an engine and compile source into it"""
        engine = cls(runtime)
        engine.compile(source)
        return engine

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def failure(self) -> Optional[CompileError]:
        return self._failure

    def compile(self, source: str) -> None:
        """
        Compile source once.

        Raises:
            CompileError: The runtime rejected the program (engine is now FAILED)
            OSError: The runtime could not run its compiler (engine is now FAILED)
            EngineStateError: compile() was already called on this engine
        """
        with self._lock:
            if self._state is not EngineState.UNINITIALIZED:
                raise EngineStateError(f"compile() called on a {self._state.value} engine")

            self._state = EngineState.COMPILING
            try:
                self._handle = self.runtime.compile(source)
            except ScriptRuntimeError as e:
                self._state = EngineState.FAILED
                self._failure = decode_compile_error(e.payload)
                self.log_error(self._failure.description)
                raise self._failure from e
            except Exception as e:
                self._state = EngineState.FAILED
                self._failure = CompileError(str(e) or e.__class__.__name__)
                self.log_error(self._failure.description)
                raise

            self._state = EngineState.READY

    def _require_ready(self) -> None:
        if self._state is EngineState.READY:
            return
        if self._state is EngineState.FAILED:
            raise EngineStateError(f"engine failed to compile ({self._failure.description})")
        raise EngineStateError(f"engine is {self._state.value}, not ready")

    def run(self) -> bool:
        """
        Execute the compiled program with no arguments.

        Returns:
            The program's boolean result

        Raises:
            ExecuteError: The program raised an error
        """
        with self._lock:
            self._require_ready()
            try:
                return self.runtime.execute(self._handle)
            except ScriptRuntimeError as e:
                error = decode_execute_error(e.payload)
                self.log_error(error.description)
                raise error from e

    def invoke(self, handler_name: str, parameters: Sequence[Any] = ()) -> bool:
        """
        Call a named handler of the compiled program.

        Args:
            handler_name: Handler defined in the compiled program
            parameters: Positional parameters (str, bool, bytes or Param)

        Returns:
            The handler's boolean result

        Raises:
            InvalidHandlerName: handler_name is not a plain identifier
            UnsupportedParameterKind: A parameter has no descriptor mapping
                (both raised before the runtime is contacted)
            ExecuteError: The handler raised an error
        """
        if not is_identifier(handler_name):
            raise InvalidHandlerName(handler_name)
        descriptors = marshal(parameters)

        with self._lock:
            self._require_ready()
            try:
                return self.runtime.execute_handler(self._handle, handler_name, descriptors)
            except ScriptRuntimeError as e:
                error = decode_execute_error(e.payload, handler=handler_name)
                self.log_error(f"{handler_name}: {error.description}")
                raise error from e

    def close(self) -> None:
        """Release the compiled handle"""
        with self._lock:
            if self._handle is not None:
                self.runtime.release(self._handle)
                self._handle = None
            if self._state is EngineState.READY:
                self._state = EngineState.CLOSED

    def __enter__(self) -> 'ScriptEngine':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def log_error(self, message: str) -> None:
        print(f"[ScriptEngine] ERROR: {message}")

    def __repr__(self) -> str:
        return f"ScriptEngine(runtime={self.runtime.name}, state={self._state.value})"
