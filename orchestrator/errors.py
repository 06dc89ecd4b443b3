#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Errors reported to the user interface.

These attach context (the record being fixed) to engine errors and carry
a short description plus an advisory recovery suggestion.
"""

from typing import Optional

from engine.errors import ExecuteError, ScriptError
from scripting.record import MissingArtwork
from scripting.templates import DriverFailure


class FixError(Exception):
    """Fixing artwork for one record failed"""

    def __init__(self, record: MissingArtwork, cause: Exception):
        self.record = record
        self.cause = cause
        super().__init__(self.description)

    @property
    def unknown(self) -> bool:
        """True when the runtime gave no message"""
        return isinstance(self.cause, ScriptError) and self.cause.unknown

    @property
    def failure(self) -> Optional[DriverFailure]:
        if isinstance(self.cause, ExecuteError):
            return self.cause.failure
        return None

    @property
    def cause_description(self) -> str:
        if isinstance(self.cause, ScriptError):
            return self.cause.description
        return str(self.cause) or self.cause.__class__.__name__

    @property
    def description(self) -> str:
        return f"Unable to change Music artwork image for {self.record.description}: {self.cause_description}"

    @property
    def recovery_suggestion(self) -> str:
        return "The artwork was not able to be fixed. Try running as an AppleScript."

    def to_dict(self):
        return {
            "record": self.record.to_dict(),
            "description": self.description,
            "recovery_suggestion": self.recovery_suggestion,
            "failure": self.failure.name if self.failure else None
        }


class LoadScriptError(Exception):
    """The template library could not be compiled into a script engine"""

    def __init__(self, cause: Exception):
        self.cause = cause
        super().__init__(self.description)

    @property
    def description(self) -> str:
        detail = self.cause.description if isinstance(self.cause, ScriptError) else str(self.cause)
        return f"AppleScript Initialization Error: {detail}"

    @property
    def recovery_suggestion(self) -> str:
        return "AppleScript cannot be initialized. Use Script Editor to run scripts."
