#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fixer Agent - Writes artwork through the script engine.

Each record becomes one named-handler call against the compiled template
library. Outcomes are recorded per record: IN_PROGRESS when the call
starts, SUCCESS or FAILURE (with a FixError) when it returns.
"""

from typing import Any, Dict

from engine.script_engine import ScriptEngine
from orchestrator.errors import FixError
from orchestrator.outcomes import OutcomeTracker
from scripting.record import FixMode, MissingArtwork
from scripting.synthesizer import build_invocation

from .base import BaseAgent


class FixerAgent(BaseAgent):
    """
    Fixer agent for applying artwork to one record at a time.

    The engine serializes calls, so records are processed one after the
    other even when the agent is shared.
    """

    def __init__(self, config, engine: ScriptEngine, outcomes: OutcomeTracker):
        super().__init__(config)
        self.engine = engine
        self.outcomes = outcomes

    @property
    def name(self) -> str:
        return "Fixer"

    def process(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fix artwork for a single record.

        Args:
            item: Dictionary with 'record', 'mode' and optional 'image' bytes

        Returns:
            Fix result with 'status' and, on failure, 'error' (FixError)
        """
        record = item.get('record')
        if not isinstance(record, MissingArtwork):
            return {"status": "error", "error": "No record provided"}

        mode = item.get('mode', FixMode.FULL)
        invocation = build_invocation(record, mode, image=item.get('image'))

        self.outcomes.start(record)
        try:
            fixed = self.engine.invoke(invocation.handler, invocation.parameters)
        except Exception as e:
            # Runtime faults outside the error taxonomy still close the outcome
            error = FixError(record, e)
            self.outcomes.complete(record, False, error)
            self.log_error(error.description)
            return {
                "status": "failed",
                "record": record,
                "error": error
            }

        self.outcomes.complete(record, fixed)
        if fixed:
            self.log(f"Fixed artwork: {record.description}")
        else:
            self.log_error(f"Handler returned false for {record.description}")

        return {
            "status": "success" if fixed else "failed",
            "record": record
        }
