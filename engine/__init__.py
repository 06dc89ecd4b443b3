# Script Engine
# Compile/execute bridge to the AppleScript runtime

from .errors import (
    ScriptError,
    CompileError,
    ExecuteError,
    UnsupportedParameterKind,
    EngineStateError,
    InvalidHandlerName,
    ScriptRuntimeError,
    decode_compile_error,
    decode_execute_error
)
from .descriptors import Descriptor, Param, Text, Flag, ImagePayload, marshal
from .runtime import ScriptRuntime, OsascriptRuntime, AppKitRuntime, create_runtime
from .script_engine import ScriptEngine, EngineState

__all__ = [
    'ScriptError',
    'CompileError',
    'ExecuteError',
    'UnsupportedParameterKind',
    'EngineStateError',
    'InvalidHandlerName',
    'ScriptRuntimeError',
    'decode_compile_error',
    'decode_execute_error',
    'Descriptor',
    'Param',
    'Text',
    'Flag',
    'ImagePayload',
    'marshal',
    'ScriptRuntime',
    'OsascriptRuntime',
    'AppKitRuntime',
    'create_runtime',
    'ScriptEngine',
    'EngineState'
]
