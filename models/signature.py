from dataclasses import dataclass, field
from typing import Callable, Sequence, Tuple

from core.html_utils import any_pattern_matches, any_text_matches

# (raw_html, script_corpus) -> matched?
Predicate = Callable[[str, Sequence[str]], bool]


@dataclass(frozen=True)
class Signature:
    """A named detection rule for one technology."""
    name: str
    predicate: Predicate = field(compare=False, repr=False)
    category: str = ""
    html_patterns: Tuple[str, ...] = ()
    script_patterns: Tuple[str, ...] = ()

    def matches(self, html: str, scripts: Sequence[str]) -> bool:
        return bool(self.predicate(html, scripts))

    @classmethod
    def from_patterns(
        cls,
        name: str,
        html_patterns: Sequence[str] = (),
        script_patterns: Sequence[str] = (),
        category: str = "",
    ) -> "Signature":
        """Build a signature that matches when any HTML pattern hits the markup
        or any script pattern hits one entry of the script corpus."""
        html_patterns = tuple(html_patterns)
        script_patterns = tuple(script_patterns)

        def predicate(html: str, scripts: Sequence[str]) -> bool:
            if any_pattern_matches(html_patterns, html):
                return True
            return any_text_matches(script_patterns, scripts)

        return cls(
            name=name,
            predicate=predicate,
            category=category,
            html_patterns=html_patterns,
            script_patterns=script_patterns,
        )


@dataclass(frozen=True)
class AnalyticsRule:
    """Analytics tool check, keyed on HTML and external script URLs only."""
    name: str
    html_patterns: Tuple[str, ...] = ()
    script_patterns: Tuple[str, ...] = ()

    def matches(self, html: str, script_urls: Sequence[str]) -> bool:
        if any_pattern_matches(self.html_patterns, html):
            return True
        return any_text_matches(self.script_patterns, script_urls)


@dataclass(frozen=True)
class ServerHint:
    """Lower-case HTML substring that maps to a platform label."""
    needle: str
    label: str


@dataclass(frozen=True)
class KeywordOverride:
    """Pattern against meta keywords that forces a technology name."""
    pattern: str
    name: str
