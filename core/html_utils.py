"""Regex helpers shared by signatures and analytics rules.

All matching is case-insensitive and runs through the ``regex`` library so a
pathological pattern/page pair is cut off by a timeout instead of hanging the
crawl. A timeout surfaces as ``TimeoutError``; callers decide what a failed
search means.
"""
from typing import Iterable, Optional, Sequence

import regex

# Hard timeout per search to prevent catastrophic backtracking
REGEX_TIMEOUT_SECONDS = 0.8

FLAGS = regex.IGNORECASE


def compile_pattern(pattern: str) -> "regex.Pattern":
    """Compile a rule pattern with the shared flags; raises ``regex.error``."""
    return regex.compile(pattern, FLAGS)


def search(pattern: str, text: str) -> Optional["regex.Match"]:
    if not text:
        return None
    return regex.search(pattern, text, FLAGS, timeout=REGEX_TIMEOUT_SECONDS)


def any_pattern_matches(patterns: Iterable[str], text: str) -> bool:
    """True if any of ``patterns`` matches ``text``."""
    if not text:
        return False
    return any(search(p, text) for p in patterns)


def any_text_matches(patterns: Iterable[str], texts: Sequence[str]) -> bool:
    """True if any pattern matches any single entry of ``texts``."""
    patterns = tuple(patterns)
    if not patterns:
        return False
    return any(any_pattern_matches(patterns, t) for t in texts)
