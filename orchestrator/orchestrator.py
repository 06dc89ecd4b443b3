#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Missing Artwork Orchestrator - Main coordination class.

Provides a programmatic interface to both ways of fixing artwork:

    Copy as AppleScript:  records -> program text -> clipboard
    Fix now:              records -> script engine (compiled once) -> outcomes

Usage:
    from orchestrator import ArtworkOrchestrator

    orch = ArtworkOrchestrator('missing-art.yaml')
    records = orch.scan('/path/to/music')
    orch.copy_script([r for r, mode in records], FixMode.PARTIAL)
    orch.load()
    orch.fix([ArtistAlbum('The Stooges', 'Fun House')], FixMode.PARTIAL)
"""

from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from engine.errors import ScriptError
from engine.runtime import ScriptRuntime, create_runtime
from engine.script_engine import EngineState, ScriptEngine
from scripting.record import FixMode, MissingArtwork
from scripting.synthesizer import build_program, unique_records
from scripting.templates import FIX_ALBUM_ARTWORK_DEFINITION

from .clipboard import ClipboardPort, create_clipboard
from .config import ConfigManager
from .errors import LoadScriptError
from .outcomes import OutcomeTracker


class ArtworkOrchestrator:
    """
    Central coordinator for fixing missing artwork.

    Owns the long-lived script engine, the clipboard port and the
    per-record outcome map.
    """

    def __init__(
        self,
        config_path: Optional[str] = "missing-art.yaml",
        config: Optional[ConfigManager] = None,
        runtime: Optional[ScriptRuntime] = None,
        clipboard: Optional[ClipboardPort] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config_path: Path to configuration file (ignored when config is given)
            config: Ready ConfigManager
            runtime: AppleScript runtime (default: from 'runtime.backend')
            clipboard: Clipboard port (default: from 'clipboard.backend')
        """
        self.config = config or ConfigManager(config_path)
        self._runtime = runtime
        self._clipboard = clipboard
        self.outcomes = OutcomeTracker()
        self.engine: Optional[ScriptEngine] = None
        self.load_error: Optional[LoadScriptError] = None

        self._progress_callback: Optional[Callable] = None

    @property
    def runtime(self) -> ScriptRuntime:
        if self._runtime is None:
            self._runtime = create_runtime(self.config)
        return self._runtime

    @property
    def clipboard(self) -> ClipboardPort:
        if self._clipboard is None:
            self._clipboard = create_clipboard(self.config)
        return self._clipboard

    def set_progress_callback(self, callback: Callable[[str, int, int], None]) -> None:
        """
        Set progress callback for UI updates.

        Args:
            callback: Function(message, current, total)
        """
        self._progress_callback = callback

    def _progress(self, message: str, current: int = 0, total: int = 0) -> None:
        """Report progress"""
        if self._progress_callback:
            self._progress_callback(message, current, total)
        else:
            print(f"[Progress] {message} ({current}/{total})" if total else f"[Progress] {message}")

    def _guard(self, guard_errors: Optional[bool]) -> bool:
        return self.config.guard_errors if guard_errors is None else guard_errors

    # ==================== Engine ====================

    @property
    def is_loaded(self) -> bool:
        return self.engine is not None and self.engine.state is EngineState.READY

    def load(self) -> ScriptEngine:
        """
        Compile the template library into the long-lived engine.

        Loading happens once; a failed load is kept until reset_load().

        Raises:
            LoadScriptError: The library could not be compiled
        """
        if self.is_loaded:
            return self.engine
        if self.load_error is not None:
            raise self.load_error

        self._progress("Compiling AppleScript library")
        try:
            self.engine = ScriptEngine.compiled(self.runtime, FIX_ALBUM_ARTWORK_DEFINITION)
        except (ScriptError, ImportError, OSError) as e:
            self.engine = None
            self.load_error = LoadScriptError(e)
            raise self.load_error from e

        return self.engine

    def reset_load(self) -> None:
        """Forget a failed load so load() can be tried again"""
        self.load_error = None

    def close(self) -> None:
        if self.engine is not None:
            self.engine.close()
            self.engine = None

    # ==================== Scanning ====================

    def scan(self, path: Optional[str] = None) -> List[Tuple[MissingArtwork, FixMode]]:
        """
        Find albums with missing artwork under path (default: library.root).

        Returns:
            (record, mode) pairs
        """
        from agents.scanner import ScannerAgent

        root = path or self.config.library_root
        if not root:
            raise ValueError("No path given and library.root is not configured")

        return ScannerAgent(self.config).records(root)

    # ==================== Copy as AppleScript ====================

    def script_for(
        self,
        records: Iterable[MissingArtwork],
        mode: Union[FixMode, str] = FixMode.FULL,
        guard_errors: Optional[bool] = None
    ) -> str:
        """Generate the program text for records"""
        return build_program(
            records,
            mode=mode,
            guard_errors=self._guard(guard_errors),
            prefix=self.config.handler_prefix,
            filler=self.config.filler
        )

    def copy_script(
        self,
        records: Iterable[MissingArtwork],
        mode: Union[FixMode, str] = FixMode.FULL,
        image: Optional[bytes] = None,
        guard_errors: Optional[bool] = None
    ) -> str:
        """
        Put the generated program (and optionally the artwork image) on the clipboard.

        A FULL program reads its image from the clipboard when run, so the
        image goes on the clipboard along with the text.
        """
        script = self.script_for(records, mode, guard_errors)
        self.clipboard.write(text=script, image=image)
        self._progress("Copied AppleScript to clipboard")
        return script

    def copy_image(self, image: bytes) -> None:
        """Put an artwork image on the clipboard"""
        self.clipboard.write(image=image)

    def run_script(
        self,
        records: Iterable[MissingArtwork],
        mode: Union[FixMode, str] = FixMode.FULL,
        guard_errors: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Generate a program and run it once in a fresh one-shot engine.

        Returns:
            Result dictionary with 'status' and, on failure, 'error'
        """
        records = unique_records(records)
        script = self.script_for(records, mode, guard_errors)

        self._progress(f"Running AppleScript for {len(records)} album(s)")
        engine = ScriptEngine(self.runtime)
        try:
            engine.compile(script)
            result = engine.run()
        except ScriptError as e:
            return {"status": "error", "error": e, "records": len(records)}
        finally:
            engine.close()

        return {"status": "success" if result else "failed", "records": len(records)}

    # ==================== Fix now ====================

    def fix(
        self,
        records: Iterable[MissingArtwork],
        mode: Union[FixMode, str] = FixMode.FULL,
        images: Optional[Mapping[MissingArtwork, bytes]] = None,
        guard_errors: Optional[bool] = None
    ) -> Dict[str, Any]:
        """
        Fix records one at a time through the long-lived engine.

        Args:
            records: Records to fix
            mode: FULL or PARTIAL
            images: Optional image payload per record (FULL mode); records
                without one use the clipboard image
            guard_errors: Keep going after a failed record (default from config);
                when False the batch stops and later records are not invoked

        Returns:
            Fix summary (counts, per-item results, outcome statistics)

        Raises:
            LoadScriptError: The engine could not be loaded
        """
        from agents.fixer import FixerAgent

        engine = self.load()
        fixer = FixerAgent(self.config, engine, self.outcomes)
        images = images or {}

        items = [
            {"record": record, "mode": mode, "image": images.get(record)}
            for record in unique_records(records)
        ]

        def report(item, result, index):
            self._progress(f"Fixing: {item['record'].description}", index + 1, len(items))

        results = fixer.process_batch(items, callback=report, stop_on_error=not self._guard(guard_errors))
        results["statistics"] = self.outcomes.get_statistics()
        return results

    # ==================== Status ====================

    def status(self) -> Dict[str, Any]:
        """Get current engine and outcome status"""
        return {
            "runtime": self.config.runtime_backend,
            "engine": self.engine.state.value if self.engine else EngineState.UNINITIALIZED.value,
            "load_error": self.load_error.description if self.load_error else None,
            "outcomes": self.outcomes.get_statistics()
        }


# Convenience function
def create_orchestrator(config_path: str = "missing-art.yaml") -> ArtworkOrchestrator:
    """Create and return an orchestrator instance"""
    return ArtworkOrchestrator(config_path)
