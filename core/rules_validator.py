"""
Utility functions to validate signature rules and report overlaps.
"""

from collections import defaultdict
from typing import Any, Dict, List

import regex

from core.html_utils import compile_pattern

SECTIONS = ("signatures", "cdn_hosts", "analytics", "server_hints", "keyword_overrides")


def _check_patterns(where: str, patterns: Any, problems: List[str]) -> None:
    """Append a problem for every pattern that is not a string or fails to compile."""
    if patterns is None:
        return
    if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
        problems.append(f"{where}: expected a list of pattern strings")
        return
    for pattern in patterns:
        try:
            compile_pattern(pattern)
        except regex.error as e:
            problems.append(f"{where}: invalid pattern {pattern!r} ({e})")


def _check_named_entries(section: str, entries: Any, keys: tuple, problems: List[str]) -> List[Dict[str, Any]]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        problems.append(f"{section}: expected a list")
        return []
    valid = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            problems.append(f"{section}[{i}]: expected a mapping")
            continue
        missing = [k for k in keys if not isinstance(entry.get(k), str) or not entry.get(k)]
        if missing:
            problems.append(f"{section}[{i}]: missing or empty {', '.join(missing)}")
            continue
        valid.append(entry)
    return valid


def validate_rules(data: Any) -> List[str]:
    """
    Validate a parsed rules document.

    Args:
        data: The result of ``yaml.safe_load`` on a rules file

    Returns:
        List of human readable problems; empty when the document is usable
    """
    problems: List[str] = []
    if not isinstance(data, dict):
        return ["rules document must be a mapping with a 'signatures' section"]

    unknown = set(data) - set(SECTIONS)
    if unknown:
        problems.append(f"unknown sections: {', '.join(sorted(unknown))}")
    if "signatures" not in data:
        problems.append("missing 'signatures' section")

    seen_names = set()
    for sig in _check_named_entries("signatures", data.get("signatures"), ("name",), problems):
        where = f"signature '{sig['name']}'"
        if sig["name"] in seen_names:
            problems.append(f"{where}: duplicate name")
        seen_names.add(sig["name"])
        _check_patterns(f"{where} html", sig.get("html"), problems)
        _check_patterns(f"{where} scripts", sig.get("scripts"), problems)
        if not sig.get("html") and not sig.get("scripts"):
            problems.append(f"{where}: needs at least one html or scripts pattern")

    hosts = data.get("cdn_hosts")
    if hosts is not None and (not isinstance(hosts, list) or not all(isinstance(h, str) and h.strip() for h in hosts)):
        problems.append("cdn_hosts: expected a list of non-empty strings")

    for rule in _check_named_entries("analytics", data.get("analytics"), ("name",), problems):
        _check_patterns(f"analytics '{rule['name']}' html", rule.get("html"), problems)
        _check_patterns(f"analytics '{rule['name']}' scripts", rule.get("scripts"), problems)

    _check_named_entries("server_hints", data.get("server_hints"), ("match", "label"), problems)

    for override in _check_named_entries("keyword_overrides", data.get("keyword_overrides"), ("pattern", "name"), problems):
        _check_patterns(f"keyword override '{override['name']}'", [override["pattern"]], problems)

    return problems


def detect_pattern_overlaps(signatures: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Detect patterns shared by more than one signature.

    Returns:
        Dictionary with pattern strings as keys and list of signature names as values
    """
    patterns_map = defaultdict(list)
    for sig in signatures:
        name = sig.get("name", "Unknown")
        for pattern in (sig.get("html") or []) + (sig.get("scripts") or []):
            if name not in patterns_map[pattern]:
                patterns_map[pattern].append(name)
    return {p: names for p, names in patterns_map.items() if len(names) > 1}


def print_validation_report(data: Dict[str, Any]) -> int:
    """Print problems and overlaps; returns the number of problems."""
    problems = validate_rules(data)
    signatures = data.get("signatures") if isinstance(data, dict) else None
    if not isinstance(signatures, list):
        signatures = []

    print("\n" + "=" * 70)
    print("SIGNATURE RULES REPORT")
    print("=" * 70)
    print(f"\nSignatures: {len(signatures)}")
    if isinstance(data, dict):
        print(f"CDN hosts: {len(data.get('cdn_hosts') or [])}")
        print(f"Analytics rules: {len(data.get('analytics') or [])}")

    if problems:
        print(f"\nPROBLEMS: {len(problems)}")
        for problem in problems:
            print(f"  - {problem}")
    else:
        print("\nNo problems found")

    overlaps = detect_pattern_overlaps([s for s in signatures if isinstance(s, dict)])
    if overlaps:
        print(f"\nPATTERN OVERLAPS: {len(overlaps)}")
        for pattern, names in sorted(overlaps.items()):
            print(f"  '{pattern}' -> {', '.join(names)}")

    print("\n" + "=" * 70)
    return len(problems)


if __name__ == "__main__":
    import argparse
    import sys

    import yaml

    from rules.rules_loader import DEFAULT_RULES_PATH

    parser = argparse.ArgumentParser(description="Validate signature rules")
    parser.add_argument("--rules", default=DEFAULT_RULES_PATH, help="Path to the rules YAML file")
    args = parser.parse_args()

    try:
        with open(args.rules, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    sys.exit(1 if print_validation_report(document) else 0)
