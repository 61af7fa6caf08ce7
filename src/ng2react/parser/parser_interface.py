"""
Abstract parser interface.
"""

from abc import ABC, abstractmethod
from typing import Any

from ..errors import TranspilerError


class ParserInterface(ABC):
    """Abstract interface for parsers."""

    @abstractmethod
    def parse(self, source: Any) -> Any:
        """
        Parse source text into its structured form.

        Args:
            source: The source text (or source unit) to parse

        Returns:
            Parsed representation (declaration record or template tree)
        """
        pass

    def validate(self, source: Any) -> bool:
        """
        Validate that source text parses.

        Args:
            source: The source text (or source unit) to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            self.parse(source)
            return True
        except TranspilerError:
            return False
