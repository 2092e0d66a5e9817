import logging
import os
from typing import Any, Dict, Optional

import yaml

from core.errors import RulesError
from core.rules_validator import validate_rules
from core.signature_registry import SignatureRegistry
from models.signature import AnalyticsRule, KeywordOverride, ServerHint, Signature

DEFAULT_RULES_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "signatures.yaml")

logger = logging.getLogger(__name__)


def build_registry(data: Dict[str, Any]) -> SignatureRegistry:
    """
    Build a frozen registry from a parsed rules document, keeping file order.
    """
    problems = validate_rules(data)
    if problems:
        raise RulesError("Invalid signature rules", problems)

    registry = SignatureRegistry()
    for sig in data["signatures"]:
        registry.add(
            Signature.from_patterns(
                name=sig["name"],
                html_patterns=sig.get("html") or [],
                script_patterns=sig.get("scripts") or [],
                category=sig.get("category", ""),
            )
        )
    for host in data.get("cdn_hosts") or []:
        registry.add_cdn_host(host)
    for rule in data.get("analytics") or []:
        registry.add_analytics_rule(
            AnalyticsRule(
                name=rule["name"],
                html_patterns=tuple(rule.get("html") or []),
                script_patterns=tuple(rule.get("scripts") or []),
            )
        )
    for hint in data.get("server_hints") or []:
        registry.add_server_hint(ServerHint(needle=hint["match"], label=hint["label"]))
    for override in data.get("keyword_overrides") or []:
        registry.add_keyword_override(KeywordOverride(pattern=override["pattern"], name=override["name"]))
    return registry.freeze()


def load_registry(path: Optional[str] = None) -> SignatureRegistry:
    """
    Loads the signature registry from a YAML rules file.
    """
    path = path or DEFAULT_RULES_PATH
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise RulesError(f"Cannot read rules file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise RulesError(f"Invalid YAML in rules file {path}: {e}") from e

    registry = build_registry(data)
    logger.info(f"Loaded {len(registry)} technology signatures from {path}")
    return registry


# Example usage (for testing)
if __name__ == "__main__":
    loaded = load_registry()
    print(f"Loaded {len(loaded)} signatures.")
    for signature in loaded:
        print(f"  - {signature.name} ({signature.category})")
        for pattern in signature.html_patterns:
            print(f"    - html: {pattern}")
        for pattern in signature.script_patterns:
            print(f"    - scripts: {pattern}")
    print(f"CDN hosts: {', '.join(loaded.cdn_hosts)}")
