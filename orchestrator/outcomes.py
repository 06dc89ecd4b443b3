#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Per-record outcome tracking for fix operations.
Entries are created when an invocation starts and overwritten when it ends.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from scripting.record import MissingArtwork

from .errors import FixError


class FixStatus(Enum):
    """Record processing status"""
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class FixOutcome:
    """Outcome of fixing one record"""
    status: FixStatus
    error: Optional[FixError] = None
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "error": self.error.to_dict() if self.error else None,
            "updated_at": self.updated_at
        }


class OutcomeTracker:
    """
    In-memory map of record -> outcome.
    Never persisted; owned by the caller running the fixes.
    """

    def __init__(self):
        self._outcomes: Dict[MissingArtwork, FixOutcome] = {}
        self._lock = threading.Lock()

    def start(self, record: MissingArtwork) -> None:
        """Mark record as in progress"""
        with self._lock:
            self._outcomes[record] = FixOutcome(FixStatus.IN_PROGRESS)

    def complete(self, record: MissingArtwork, success: bool, error: Optional[FixError] = None) -> FixOutcome:
        """Record the final outcome"""
        outcome = FixOutcome(FixStatus.SUCCESS if success else FixStatus.FAILURE, error=error)
        with self._lock:
            self._outcomes[record] = outcome
        return outcome

    def get(self, record: MissingArtwork) -> Optional[FixOutcome]:
        with self._lock:
            return self._outcomes.get(record)

    def status(self, record: MissingArtwork) -> Optional[FixStatus]:
        outcome = self.get(record)
        return outcome.status if outcome else None

    def get_by_status(self, status: FixStatus) -> List[MissingArtwork]:
        """Get all records with a specific status"""
        with self._lock:
            return [r for r, o in self._outcomes.items() if o.status is status]

    def errors(self) -> List[FixError]:
        with self._lock:
            return [o.error for o in self._outcomes.values() if o.error is not None]

    def count_by_status(self) -> Dict[str, int]:
        """Get count of records by status"""
        counts = {status.value: 0 for status in FixStatus}
        with self._lock:
            for outcome in self._outcomes.values():
                counts[outcome.status.value] += 1
        return counts

    def get_statistics(self) -> Dict[str, Any]:
        counts = self.count_by_status()
        return {
            "total": len(self),
            "counts": counts,
            "succeeded": counts[FixStatus.SUCCESS.value],
            "failed": counts[FixStatus.FAILURE.value],
            "in_progress": counts[FixStatus.IN_PROGRESS.value]
        }

    def clear(self) -> None:
        with self._lock:
            self._outcomes = {}

    def __contains__(self, record: object) -> bool:
        with self._lock:
            return record in self._outcomes

    def __len__(self) -> int:
        with self._lock:
            return len(self._outcomes)

    def __repr__(self) -> str:
        stats = self.get_statistics()
        return f"OutcomeTracker(total={stats['total']}, failed={stats['failed']})"
