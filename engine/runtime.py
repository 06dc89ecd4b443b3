#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
External AppleScript runtimes.

A runtime knows three calls:

    compile(source)                               -> opaque handle
    execute(handle)                               -> bool
    execute_handler(handle, name, descriptors)    -> bool

Failures raise ScriptRuntimeError with a native key/value payload.
Runtimes are not safe for concurrent use; ScriptEngine serializes access.

Backends:
- OsascriptRuntime: osacompile/osascript subprocesses (no extra packages)
- AppKitRuntime: NSAppleScript through PyObjC, sending a real subroutine
  Apple event to the compiled script
"""

import re
import shutil
import subprocess
import sys
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from scripting.sanitizer import escape_literal, is_identifier

from .descriptors import TYPE_BOOLEAN, TYPE_IMAGE, TYPE_TEXT, Descriptor, fourcc
from .errors import (
    ERROR_MESSAGE,
    ERROR_NUMBER,
    InvalidHandlerName,
    ScriptRuntimeError,
    UnsupportedParameterKind,
)

# "program.scpt: execution error: Cannot find image data for X (502)"
# "program.applescript:10:17: script error: Expected end of line. (-2741)"
_OSA_ERROR = re.compile(
    r'(?:script|execution) error: (?P<message>.*?)(?: \((?P<number>-?\d+)\))?\s*$',
    re.S
)

# Apple event constants (AppleScript.h / AEDataModel.h)
APPLESCRIPT_SUITE = "ascr"
SUBROUTINE_EVENT = "psbr"
SUBROUTINE_NAME_KEYWORD = "snam"
DIRECT_OBJECT_KEYWORD = "----"
AUTO_GENERATE_RETURN_ID = -1
ANY_TRANSACTION_ID = 0


def is_available() -> bool:
    """Check if AppleScript is available (macOS with osascript)"""
    return sys.platform == 'darwin' and shutil.which('osascript') is not None


def parse_osa_error(stderr: str) -> Dict[str, Any]:
    """Turn osascript/osacompile stderr into an error payload"""
    text = (stderr or "").strip()
    if not text:
        return {}

    last_line = text.splitlines()[-1]
    match = _OSA_ERROR.search(last_line)
    if not match:
        return {ERROR_MESSAGE: last_line}

    payload: Dict[str, Any] = {ERROR_MESSAGE: match.group('message').strip()}
    if match.group('number'):
        payload[ERROR_NUMBER] = int(match.group('number'))
    return payload


def render_literal(descriptor: Descriptor) -> str:
    """Render a descriptor as an AppleScript literal"""
    if descriptor.type_code == TYPE_TEXT:
        return f'"{escape_literal(descriptor.value)}"'
    if descriptor.type_code == TYPE_BOOLEAN:
        return "true" if descriptor.value else "false"
    if descriptor.type_code == TYPE_IMAGE:
        return f"«data {TYPE_IMAGE}{descriptor.value.hex().upper()}»"
    raise UnsupportedParameterKind(descriptor.type_code)


class ScriptRuntime(ABC):
    """Base class for AppleScript runtimes"""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def compile(self, source: str) -> Any:
        pass

    @abstractmethod
    def execute(self, handle: Any) -> bool:
        pass

    @abstractmethod
    def execute_handler(self, handle: Any, handler_name: str, descriptors: List[Descriptor]) -> bool:
        pass

    def release(self, handle: Any) -> None:
        """Free resources held by a compiled handle"""

    def log(self, message: str) -> None:
        print(f"[{self.name}] {message}")

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


@dataclass
class CompiledScript:
    """Compiled script file produced by osacompile"""
    path: Path
    workdir: Path


class OsascriptRuntime(ScriptRuntime):
    """
    Runtime built on the osacompile and osascript command line tools.

    Handlers are invoked by loading the compiled script into a small
    wrapper program and calling the handler with literal parameters.
    """

    def __init__(
        self,
        osascript_path: str = "osascript",
        osacompile_path: str = "osacompile",
        timeout: Optional[float] = None
    ):
        self.osascript_path = osascript_path
        self.osacompile_path = osacompile_path
        self.timeout = timeout

    @property
    def name(self) -> str:
        return "osascript"

    def _call(self, cmd: List[str], input_text: Optional[str] = None) -> str:
        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                capture_output=True,
                text=True,
                encoding='utf-8',
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired:
            raise ScriptRuntimeError({ERROR_MESSAGE: f"{Path(cmd[0]).name} timed out after {self.timeout} seconds"})
        except FileNotFoundError:
            raise ScriptRuntimeError({ERROR_MESSAGE: f"{cmd[0]} not found"})

        if result.returncode != 0:
            raise ScriptRuntimeError(parse_osa_error(result.stderr))
        return result.stdout.strip()

    def compile(self, source: str) -> CompiledScript:
        workdir = Path(tempfile.mkdtemp(prefix="missing-art-"))
        source_path = workdir / "program.applescript"
        compiled_path = workdir / "program.scpt"
        source_path.write_text(source, encoding='utf-8')

        try:
            self._call([self.osacompile_path, '-o', str(compiled_path), str(source_path)])
        except ScriptRuntimeError:
            shutil.rmtree(workdir, ignore_errors=True)
            raise

        return CompiledScript(path=compiled_path, workdir=workdir)

    def execute(self, handle: CompiledScript) -> bool:
        output = self._call([self.osascript_path, str(handle.path)])
        return output.lower() == "true"

    def handler_program(self, handle: CompiledScript, handler_name: str, descriptors: List[Descriptor]) -> str:
        """Wrapper program that loads the compiled script and calls one handler"""
        if not is_identifier(handler_name):
            raise InvalidHandlerName(handler_name)

        arguments = ", ".join(render_literal(d) for d in descriptors)
        return (
            f'set compiledProgram to load script (POSIX file "{escape_literal(str(handle.path))}")\n'
            f'tell compiledProgram to return {handler_name}({arguments})\n'
        )

    def execute_handler(self, handle: CompiledScript, handler_name: str, descriptors: List[Descriptor]) -> bool:
        program = self.handler_program(handle, handler_name, descriptors)
        output = self._call([self.osascript_path, '-'], input_text=program)
        return output.lower() == "true"

    def release(self, handle: CompiledScript) -> None:
        shutil.rmtree(handle.workdir, ignore_errors=True)

    def __repr__(self) -> str:
        return f"OsascriptRuntime(osascript={self.osascript_path}, timeout={self.timeout})"


class AppKitRuntime(ScriptRuntime):
    """Runtime built on NSAppleScript (PyObjC, macOS only)"""

    def __init__(self):
        try:
            import Foundation
        except ImportError as e:
            raise ImportError(
                "The appkit runtime needs PyObjC: pip install 'missing-art[macos]'"
            ) from e
        self._foundation = Foundation

    @property
    def name(self) -> str:
        return "appkit"

    @staticmethod
    def _payload(error: Any) -> Dict[str, Any]:
        if error is None:
            return {}
        return {str(k): v for k, v in dict(error).items()}

    def _native(self, descriptor: Descriptor) -> Any:
        event_descriptor = self._foundation.NSAppleEventDescriptor
        if descriptor.type_code == TYPE_TEXT:
            return event_descriptor.descriptorWithString_(descriptor.value)
        if descriptor.type_code == TYPE_BOOLEAN:
            return event_descriptor.descriptorWithBoolean_(descriptor.value)
        if descriptor.type_code == TYPE_IMAGE:
            data = self._foundation.NSData.dataWithBytes_length_(descriptor.value, len(descriptor.value))
            native = event_descriptor.descriptorWithDescriptorType_data_(fourcc(TYPE_IMAGE), data)
            if native is None:
                raise UnsupportedParameterKind("ImagePayload")
            return native
        raise UnsupportedParameterKind(descriptor.type_code)

    def compile(self, source: str) -> Any:
        script = self._foundation.NSAppleScript.alloc().initWithSource_(source)
        if script is None:
            raise ScriptRuntimeError({ERROR_MESSAGE: "Cannot initialize NSAppleScript"})

        compiled, error = script.compileAndReturnError_(None)
        if not compiled:
            raise ScriptRuntimeError(self._payload(error))
        return script

    def execute(self, handle: Any) -> bool:
        result, error = handle.executeAndReturnError_(None)
        if result is None:
            raise ScriptRuntimeError(self._payload(error))
        return bool(result.booleanValue())

    def execute_handler(self, handle: Any, handler_name: str, descriptors: List[Descriptor]) -> bool:
        event_descriptor = self._foundation.NSAppleEventDescriptor

        event = event_descriptor.appleEventWithEventClass_eventID_targetDescriptor_returnID_transactionID_(
            fourcc(APPLESCRIPT_SUITE),
            fourcc(SUBROUTINE_EVENT),
            None,
            AUTO_GENERATE_RETURN_ID,
            ANY_TRANSACTION_ID
        )
        # Compiled handler names are stored lower-cased
        event.setDescriptor_forKeyword_(
            event_descriptor.descriptorWithString_(handler_name.lower()),
            fourcc(SUBROUTINE_NAME_KEYWORD)
        )

        parameters = event_descriptor.listDescriptor()
        for descriptor in descriptors:
            # Index 0 appends
            parameters.insertDescriptor_atIndex_(self._native(descriptor), 0)
        event.setDescriptor_forKeyword_(parameters, fourcc(DIRECT_OBJECT_KEYWORD))

        result, error = handle.executeAppleEvent_error_(event, None)
        if result is None:
            raise ScriptRuntimeError(self._payload(error))
        return bool(result.booleanValue())


def create_runtime(config) -> ScriptRuntime:
    """Create the runtime named by 'runtime.backend' in config"""
    backend = config.get('runtime.backend', 'osascript')

    if backend == 'osascript':
        return OsascriptRuntime(
            osascript_path=config.get('runtime.osascript_path', 'osascript'),
            osacompile_path=config.get('runtime.osacompile_path', 'osacompile'),
            timeout=config.get('runtime.timeout')
        )
    if backend == 'appkit':
        return AppKitRuntime()

    raise ValueError(f"Unknown runtime backend: {backend}")
