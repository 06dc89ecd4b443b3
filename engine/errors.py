#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error taxonomy for the compile/execute bridge.

Runtimes report failures as native key/value payloads (the same keys
NSAppleScript uses). The engine decodes them into CompileError or
ExecuteError; the only key relied upon is the message, which may be absent.
"""

from typing import Any, Mapping, Optional

from scripting.templates import DriverFailure

ERROR_MESSAGE = "NSAppleScriptErrorMessage"
ERROR_NUMBER = "NSAppleScriptErrorNumber"
ERROR_BRIEF_MESSAGE = "NSAppleScriptErrorBriefMessage"
ERROR_APP_NAME = "NSAppleScriptErrorAppName"


class ScriptRuntimeError(Exception):
    """Raised by a runtime backend, carrying the native error payload"""

    def __init__(self, payload: Optional[Mapping[str, Any]] = None):
        self.payload = dict(payload or {})
        super().__init__(self.payload.get(ERROR_MESSAGE) or "Unknown runtime error")


class ScriptError(Exception):
    """Base class for engine errors"""

    def __init__(self, message: Optional[str] = None):
        self.message = message
        super().__init__(self.description)

    @property
    def unknown(self) -> bool:
        return self.message is None

    @property
    def description(self) -> str:
        return self.message or "Unknown AppleScript Error"

    @property
    def recovery_suggestion(self) -> Optional[str]:
        return None


class CompileError(ScriptError):
    """Program text failed to compile; the engine instance is unusable"""

    @property
    def description(self) -> str:
        if self.message is None:
            return "Unknown AppleScript Compilation Error"
        return f"AppleScript Compilation Error: {self.message}"

    @property
    def recovery_suggestion(self) -> Optional[str]:
        return "Create a new script engine, or run the script from Script Editor."


class ExecuteError(ScriptError):
    """A call into the runtime failed; the engine stays usable"""

    def __init__(
        self,
        message: Optional[str] = None,
        number: Optional[int] = None,
        handler: Optional[str] = None
    ):
        self.number = number
        self.handler = handler
        super().__init__(message)

    @property
    def failure(self) -> Optional[DriverFailure]:
        """Driver-level failure (search, image, reset, set), if any"""
        return DriverFailure.from_number(self.number)

    @property
    def description(self) -> str:
        if self.handler is None:
            if self.message is None:
                return "Unknown AppleScript Execution Error"
            return f"AppleScript Execution Error: {self.message}"
        if self.message is None:
            return "Unknown AppleScript Event Execution Error"
        return f"AppleScript Event Execution Error: {self.message}"


class UnsupportedParameterKind(ScriptError, TypeError):
    """A parameter has no descriptor mapping; raised before any runtime call"""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(type_name)

    @property
    def description(self) -> str:
        return f"No Type Descriptor for type: {self.type_name}"


class InvalidHandlerName(ScriptError, ValueError):
    """Handler name is not a plain AppleScript identifier; raised before any runtime call"""

    def __init__(self, handler_name: str):
        self.handler_name = handler_name
        super().__init__(handler_name)

    @property
    def description(self) -> str:
        return f"Invalid AppleScript handler name: {self.handler_name!r}"


class EngineStateError(ScriptError, RuntimeError):
    """Engine used out of order (compile twice, invoke before ready)"""

    @property
    def description(self) -> str:
        return f"Script engine misuse: {self.message}"


def _message(payload: Mapping[str, Any]) -> Optional[str]:
    message = payload.get(ERROR_MESSAGE)
    if isinstance(message, str):
        return message
    return None


def _number(payload: Mapping[str, Any]) -> Optional[int]:
    number = payload.get(ERROR_NUMBER)
    if number is None:
        return None
    try:
        return int(number)
    except (TypeError, ValueError):
        return None


def decode_compile_error(payload: Optional[Mapping[str, Any]]) -> CompileError:
    """Map a native compile error payload to CompileError(message|unknown)"""
    return CompileError(_message(payload or {}))


def decode_execute_error(
    payload: Optional[Mapping[str, Any]],
    handler: Optional[str] = None
) -> ExecuteError:
    """Map a native execute error payload to ExecuteError(message|unknown)"""
    payload = payload or {}
    return ExecuteError(_message(payload), number=_number(payload), handler=handler)
