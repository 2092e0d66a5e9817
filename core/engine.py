import logging
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from core.context import EvidenceBundle
from core.html_utils import search
from core.signature_registry import SignatureRegistry
from core.url_utils import resolve_url
from models.record import ClassificationRecord, ScriptRef

# Output bound only; detection always uses every script
MAX_SCRIPTS = 50

VIA_CDN_HOSTS = "cdn-hosts"
VIA_ANALYTICS = "analytics-snippets"
VIA_META_GENERATOR = "meta-generator"
VIA_INLINE_SCRIPTS = "inline-script-snippets"


def _utc_now() -> str:
    # Millisecond precision with a "Z" suffix, e.g. 2024-01-01T00:00:00.000Z
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _append_unique(items: List[str], value: str):
    if value and value not in items:
        items.append(value)


class ClassificationEngine:
    def __init__(self, registry: SignatureRegistry, clock: Optional[Callable[[], str]] = None):
        """Initialize the engine with a signature registry.

        Args:
            registry: Registry to evaluate; it is frozen if it is not already
            clock: Returns the record timestamp as an ISO-8601 string
        """
        self.logger = logging.getLogger(__name__)
        self.registry = registry if registry.frozen else registry.freeze()
        self.clock = clock or _utc_now

    def classify(self, bundle: EvidenceBundle) -> ClassificationRecord:
        """Classify one page. Exceptions other than per-rule failures propagate."""
        html = bundle.raw_html
        corpus = bundle.script_corpus

        technologies = self._match_signatures(html, corpus, bundle.page_url)
        _append_unique(technologies, bundle.meta_generator)
        for name in self._keyword_overrides(bundle.meta_keywords):
            _append_unique(technologies, name)

        scripts = [resolve_url(src, bundle.page_url) for src in bundle.external_script_urls]
        hints = [resolve_url(href, bundle.page_url) for href in bundle.resource_hint_urls]
        cdns = self._cdn_hosts(scripts + hints)
        analytics = self._match_analytics(html, bundle.external_script_urls, bundle.page_url)
        server = bundle.meta_generator or self._server_from_html(html)

        detected_via = []
        if cdns:
            detected_via.append(VIA_CDN_HOSTS)
        if analytics:
            detected_via.append(VIA_ANALYTICS)
        if bundle.meta_generator:
            detected_via.append(VIA_META_GENERATOR)
        if bundle.inline_script_snippets:
            detected_via.append(VIA_INLINE_SCRIPTS)

        self.logger.debug(
            f"Classified {bundle.page_url}: {len(technologies)} technologies, "
            f"{len(cdns)} CDN hosts, {len(analytics)} analytics"
        )
        return ClassificationRecord(
            url=bundle.page_url,
            title=bundle.title,
            technologies=tuple(technologies),
            cdns=tuple(cdns),
            analytics=tuple(analytics),
            scripts=tuple(scripts[:MAX_SCRIPTS]),
            meta_generator=bundle.meta_generator,
            server=server,
            detected_via=tuple(detected_via),
            timestamp=self.clock(),
        )

    def _match_signatures(self, html: str, corpus, page_url: str) -> List[str]:
        matched: List[str] = []
        for signature in self.registry.signatures:
            try:
                hit = signature.matches(html, corpus)
            except Exception as e:
                self.logger.warning(f"Signature {signature.name} failed on {page_url}: {e}")
                continue
            if hit:
                _append_unique(matched, signature.name)
        return matched

    def _match_analytics(self, html: str, script_urls, page_url: str) -> List[str]:
        matched: List[str] = []
        for rule in self.registry.analytics_rules:
            try:
                hit = rule.matches(html, script_urls)
            except Exception as e:
                self.logger.warning(f"Analytics rule {rule.name} failed on {page_url}: {e}")
                continue
            if hit:
                _append_unique(matched, rule.name)
        return matched

    def _keyword_overrides(self, keywords: str) -> List[str]:
        if not keywords:
            return []
        names = []
        for override in self.registry.keyword_overrides:
            try:
                if search(override.pattern, keywords):
                    names.append(override.name)
            except TimeoutError:
                self.logger.warning(f"Keyword override {override.name} timed out")
        return names

    def _cdn_hosts(self, refs: Iterable[ScriptRef]) -> List[str]:
        hosts: List[str] = []
        for ref in refs:
            if self.registry.is_cdn_host(ref.host):
                _append_unique(hosts, ref.host)
        return hosts

    def _server_from_html(self, html: str) -> str:
        lower = html.lower()
        for hint in self.registry.server_hints:
            if hint.needle in lower:
                return hint.label
        return ""
