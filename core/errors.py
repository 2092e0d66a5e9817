"""Exceptions raised while loading rules and configuration."""
from typing import List, Optional


class RulesError(ValueError):
    """Raised when a signature rules file is missing keys or has bad patterns."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = problems or []
        if self.problems:
            message = f"{message}:\n  - " + "\n  - ".join(self.problems)
        super().__init__(message)


class RegistryFrozenError(RuntimeError):
    """Raised when a frozen signature registry is mutated."""


class ConfigError(ValueError):
    """Raised for unknown or wrongly typed crawl configuration values."""
