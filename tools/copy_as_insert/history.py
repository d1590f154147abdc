"""Recent conversion history, kept in memory and optionally saved as JSON."""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from shared.logger import get_logger

from .models import ConversionResult

logger = get_logger(__name__)


class ConversionHistory:
    """
    Most recent conversion results.

    Attributes:
        history: Results, oldest first
        max_history: Maximum number of results to keep
    """

    def __init__(self, max_history: int = 10):
        self.history: List[ConversionResult] = []
        self.max_history = max_history

    def add(self, result: ConversionResult) -> ConversionResult:
        """Record a result, dropping the oldest beyond ``max_history``."""
        self.history.append(result)

        if len(self.history) > self.max_history:
            self.history = self.history[-self.max_history :]

        logger.debug(f"History: {result.summary}")
        return result

    def get_history(self, limit: Optional[int] = None) -> List[ConversionResult]:
        """
        Get recorded results.

        Args:
            limit: Maximum number of results to return

        Returns:
            List of ConversionResult (most recent first)
        """
        history = list(reversed(self.history))
        if limit:
            history = history[:limit]
        return history

    def clear(self) -> int:
        """Clear history and return how many results were dropped."""
        count = len(self.history)
        self.history.clear()
        return count

    def save_to_file(self, filepath: Path) -> None:
        """Save history to a JSON file."""
        data = {
            "exported_at": datetime.now().isoformat(),
            "total": len(self.history),
            "conversions": [r.to_dict() for r in self.history],
        }

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

        logger.info(f"Saved {len(self.history)} conversion(s) to {filepath}")

    def load_from_file(self, filepath: Path) -> int:
        """
        Load history from a JSON file, replacing what is in memory.

        Returns:
            Number of results loaded

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid history JSON
        """
        with open(filepath, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid history file {filepath}: {e}")

        try:
            loaded = [ConversionResult.from_dict(item) for item in data.get("conversions", [])]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid history file {filepath}: {e}")

        self.history = loaded[-self.max_history :]
        logger.info(f"Loaded {len(self.history)} conversion(s) from {filepath}")
        return len(self.history)
