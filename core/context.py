from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class EvidenceBundle:
    page_url: str
    raw_html: str = ""
    title: str = ""
    meta_generator: str = ""
    external_script_urls: Tuple[str, ...] = () # raw src values, unresolved
    inline_script_snippets: Tuple[str, ...] = () # first 200 chars of each inline script
    resource_hint_urls: Tuple[str, ...] = () # preconnect / preload / dns-prefetch hrefs
    meta_keywords: str = ""

    @property
    def script_corpus(self) -> Tuple[str, ...]:
        """External script URLs followed by inline snippets."""
        return self.external_script_urls + self.inline_script_snippets
