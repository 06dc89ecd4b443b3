"""Pytest configuration and fixtures."""

import re
import threading
import time

import pytest

from engine.errors import ERROR_MESSAGE, ERROR_NUMBER, ScriptRuntimeError
from engine.runtime import ScriptRuntime
from orchestrator.clipboard import MemoryClipboard
from orchestrator.config import ConfigManager
from orchestrator.orchestrator import ArtworkOrchestrator
from scripting.record import ArtistAlbum, CompilationAlbum
from scripting.templates import DRIVER_HANDLER, LOG_PREFIX

_DRIVER_CALL = re.compile(DRIVER_HANDLER + r'\("((?:[^"\\]|\\.)*)"')


def unescape_literal(text):
    """Reverse of escape_literal, the way AppleScript reads a string literal"""
    replacements = {'\\': '\\', '"': '"', 'n': '\n', 'r': '\r', 't': '\t'}
    out = []
    i = 0
    while i < len(text):
        if text[i] == '\\' and i + 1 < len(text):
            out.append(replacements[text[i + 1]])
            i += 2
        else:
            out.append(text[i])
            i += 1
    return ''.join(out)


def string_literals(source):
    """All double-quoted literals in source, unescaped"""
    return [unescape_literal(m) for m in re.findall(r'"((?:[^"\\]|\\.)*)"', source)]


class FakeRuntime(ScriptRuntime):
    """
    Instrumented runtime.

    Records every call, counts overlapping calls, and fails handler calls
    (or driver invocations inside executed programs) whose search string
    is in fail_searches.
    """

    def __init__(self, compile_error=None, run_error=None, delay=0.0, result=True):
        self.compile_error = compile_error
        self.run_error = run_error
        self.delay = delay
        self.result = result
        self.fail_searches = {}
        self.sources = []
        self.calls = []
        self.runs = 0
        self.released = []
        self.executed_searches = []
        self.logged = []
        self.overlaps = 0
        self._active = 0
        self._counter = threading.Lock()

    @property
    def name(self):
        return "fake"

    def _enter(self):
        with self._counter:
            self._active += 1
            if self._active > 1:
                self.overlaps += 1
        if self.delay:
            time.sleep(self.delay)

    def _exit(self):
        with self._counter:
            self._active -= 1

    def fail(self, search, message="Cannot find image data", number=502):
        payload = {}
        if message is not None:
            payload[ERROR_MESSAGE] = message
        if number is not None:
            payload[ERROR_NUMBER] = number
        self.fail_searches[search] = payload

    def compile(self, source):
        self._enter()
        try:
            if self.compile_error is not None:
                raise ScriptRuntimeError(self.compile_error)
            self.sources.append(source)
            return len(self.sources)
        finally:
            self._exit()

    def execute(self, handle):
        self._enter()
        try:
            self.runs += 1
            if self.run_error is not None:
                raise ScriptRuntimeError(self.run_error)
            return self._execute_program(self.sources[handle - 1])
        finally:
            self._exit()

    def _execute_program(self, source):
        """Walk the top-level statements after the template library"""
        guarded = False
        in_handler = False
        for line in source.splitlines():
            stripped = line.strip()
            if stripped.startswith('on ') and not stripped.startswith('on error') and not line.startswith(' '):
                in_handler = True
                continue
            if in_handler:
                if stripped.startswith('end ') and not line.startswith(' '):
                    in_handler = False
                continue
            if stripped == 'try':
                guarded = True
                continue
            if stripped == 'end try':
                guarded = False
                continue
            match = _DRIVER_CALL.search(stripped)
            if match:
                search = unescape_literal(match.group(1))
                self.executed_searches.append(search)
                payload = self.fail_searches.get(search)
                if payload is not None:
                    if not guarded:
                        raise ScriptRuntimeError(payload)
                    self.logged.append(LOG_PREFIX + payload.get(ERROR_MESSAGE, ''))
            if stripped == 'return true':
                return self.result
        return self.result

    def execute_handler(self, handle, handler_name, descriptors):
        self._enter()
        try:
            self.calls.append((handler_name, descriptors))
            payload = self.fail_searches.get(descriptors[0].value) if descriptors else None
            if payload is not None:
                raise ScriptRuntimeError(payload)
            return self.result
        finally:
            self._exit()

    def release(self, handle):
        self.released.append(handle)


@pytest.fixture
def runtime():
    return FakeRuntime()


@pytest.fixture
def config():
    return ConfigManager(None)


@pytest.fixture
def clipboard():
    return MemoryClipboard()


@pytest.fixture
def orchestrator(config, runtime, clipboard):
    orch = ArtworkOrchestrator(config=config, runtime=runtime, clipboard=clipboard)
    orch.set_progress_callback(lambda message, current, total: None)
    return orch


@pytest.fixture
def stooges():
    return ArtistAlbum("The Stooges", "Fun House")


@pytest.fixture
def beleza():
    return CompilationAlbum("Beleza Tropical: Brazil Classics 1")


@pytest.fixture
def batch():
    return [
        ArtistAlbum("The Stooges", "Fun House"),
        ArtistAlbum("Talking Heads", "Remain in Light"),
        CompilationAlbum("Beleza Tropical: Brazil Classics 1"),
    ]
