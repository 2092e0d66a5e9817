"""Ordered, append-only collection of detection rules."""
import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from core.errors import RegistryFrozenError
from models.signature import (
    AnalyticsRule,
    KeywordOverride,
    Predicate,
    ServerHint,
    Signature,
)

logger = logging.getLogger(__name__)


class SignatureRegistry:
    """Holds signatures plus the CDN, analytics, server-hint and keyword tables.

    Order is presentation order only: every matching signature is reported.
    Once frozen the registry is read-only and safe to share between
    concurrent classifications.
    """

    def __init__(self):
        self._signatures: List[Signature] = []
        self._names: Dict[str, Signature] = {}
        self._cdn_hosts: List[str] = []
        self._analytics: List[AnalyticsRule] = []
        self._server_hints: List[ServerHint] = []
        self._keyword_overrides: List[KeywordOverride] = []
        self._frozen = False

    def _check_mutable(self):
        if self._frozen:
            raise RegistryFrozenError("signature registry is frozen")

    def add(self, signature: Signature) -> Signature:
        """Append a signature; names must be unique."""
        self._check_mutable()
        if signature.name in self._names:
            raise ValueError(f"Signature '{signature.name}' already registered")
        self._signatures.append(signature)
        self._names[signature.name] = signature
        logger.debug(f"Registered signature: {signature.name}")
        return signature

    def register(self, name: str, category: str = "") -> Callable[[Predicate], Predicate]:
        """Decorator to register a plain function as a signature predicate.

        Example:
            @registry.register("Alpine.js", category="framework")
            def alpine(html, scripts):
                return "x-data=" in html
        """
        def decorator(predicate: Predicate) -> Predicate:
            self.add(Signature(name=name, predicate=predicate, category=category))
            return predicate
        return decorator

    def add_cdn_host(self, host_substring: str):
        self._check_mutable()
        needle = host_substring.strip().lower()
        if needle and needle not in self._cdn_hosts:
            self._cdn_hosts.append(needle)

    def add_analytics_rule(self, rule: AnalyticsRule):
        self._check_mutable()
        self._analytics.append(rule)

    def add_server_hint(self, hint: ServerHint):
        self._check_mutable()
        self._server_hints.append(ServerHint(needle=hint.needle.lower(), label=hint.label))

    def add_keyword_override(self, override: KeywordOverride):
        self._check_mutable()
        self._keyword_overrides.append(override)

    def freeze(self) -> "SignatureRegistry":
        self._frozen = True
        logger.debug(
            f"Registry frozen: {len(self._signatures)} signatures, {len(self._cdn_hosts)} CDN hosts, "
            f"{len(self._analytics)} analytics rules"
        )
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def signatures(self) -> Tuple[Signature, ...]:
        return tuple(self._signatures)

    @property
    def cdn_hosts(self) -> Tuple[str, ...]:
        return tuple(self._cdn_hosts)

    @property
    def analytics_rules(self) -> Tuple[AnalyticsRule, ...]:
        return tuple(self._analytics)

    @property
    def server_hints(self) -> Tuple[ServerHint, ...]:
        return tuple(self._server_hints)

    @property
    def keyword_overrides(self) -> Tuple[KeywordOverride, ...]:
        return tuple(self._keyword_overrides)

    def get(self, name: str) -> Optional[Signature]:
        return self._names.get(name)

    def get_all_names(self) -> List[str]:
        """Signature names in registration order."""
        return [s.name for s in self._signatures]

    def is_cdn_host(self, host: str) -> bool:
        """Substring containment, not exact match."""
        host = (host or "").lower()
        return bool(host) and any(sig in host for sig in self._cdn_hosts)

    def __len__(self) -> int:
        return len(self._signatures)

    def __iter__(self) -> Iterator[Signature]:
        return iter(tuple(self._signatures))
