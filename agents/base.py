#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base class for processing agents.
All agents (Scanner, Fixer) inherit from this.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import time


class BaseAgent(ABC):
    """
    Abstract base class for processing agents.

    Agents are responsible for specific tasks:
    - Scanner: Find albums with missing artwork
    - Fixer: Write artwork through the script engine
    """

    def __init__(self, config):
        """
        Initialize agent with configuration.

        Args:
            config: ConfigManager instance
        """
        self.config = config
        self._start_time: Optional[float] = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent name identifier"""
        pass

    @abstractmethod
    def process(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Process a single item.

        Args:
            item: Dictionary describing the work item

        Returns:
            Dictionary with processing results including 'status'
        """
        pass

    def process_batch(self, items: list, callback=None, stop_on_error: bool = False) -> Dict[str, Any]:
        """
        Process multiple items in order.

        Args:
            items: List of items to process
            callback: Optional callback(item, result, index) called after each item
            stop_on_error: Stop at the first failed item; later items are not processed

        Returns:
            Summary of batch processing
        """
        results = {
            "total": len(items),
            "success": 0,
            "failed": 0,
            "not_processed": 0,
            "items": []
        }

        self._start_time = time.time()

        for i, item in enumerate(items):
            try:
                result = self.process(item)
            except Exception as e:
                result = {"status": "error", "error": str(e)}
                self.log_error(f"Error processing item {i + 1}: {e}")

            status = result.get("status")
            if status == "success":
                results["success"] += 1
            else:
                results["failed"] += 1

            results["items"].append(result)

            if callback:
                callback(item, result, i)

            if stop_on_error and status != "success":
                results["not_processed"] = len(items) - i - 1
                if results["not_processed"]:
                    self.log(f"Stopping batch, {results['not_processed']} item(s) not processed")
                break

        results["duration"] = time.time() - self._start_time
        return results

    def log(self, message: str) -> None:
        """Log a message with agent name prefix"""
        print(f"[{self.name}] {message}")

    def log_error(self, message: str) -> None:
        """Log an error message"""
        print(f"[{self.name}] ERROR: {message}")
