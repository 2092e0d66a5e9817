import pytest
import yaml

from core.errors import RulesError
from core.rules_validator import detect_pattern_overlaps, validate_rules
from rules.rules_loader import DEFAULT_RULES_PATH, build_registry, load_registry


def test_default_rules_load_in_file_order():
    registry = load_registry()

    assert registry.frozen
    assert registry.get_all_names() == [
        "React", "Vue", "Angular", "Next.js", "Gatsby", "jQuery", "WordPress",
        "Shopify", "Vercel", "Cloudflare", "Google Analytics", "Segment",
        "Hotjar", "Stripe", "Microsoft IIS",
    ]
    assert registry.cdn_hosts[0] == "cdn.jsdelivr.net"
    assert "cdn.ampproject.org" in registry.cdn_hosts
    assert [r.name for r in registry.analytics_rules] == ["Google Analytics", "Hotjar", "Segment"]
    assert [h.label for h in registry.server_hints] == ["WordPress", "Shopify", "Vercel"]
    assert [o.name for o in registry.keyword_overrides] == ["Shopify"]


def test_default_rules_file_is_valid():
    with open(DEFAULT_RULES_PATH, "r", encoding="utf-8") as f:
        assert validate_rules(yaml.safe_load(f)) == []


def test_custom_rules_file(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "signatures:\n"
        "  - name: Svelte\n"
        "    html: ['svelte-[a-z0-9]+']\n"
        "cdn_hosts: [cdn.example.net]\n",
        encoding="utf-8",
    )
    registry = load_registry(str(path))

    assert registry.get_all_names() == ["Svelte"]
    assert registry.cdn_hosts == ("cdn.example.net",)
    assert registry.analytics_rules == ()


def test_invalid_pattern_is_reported():
    problems = validate_rules({"signatures": [{"name": "Bad", "html": ["(unclosed"]}]})

    assert len(problems) == 1
    assert "Bad" in problems[0]


def test_duplicate_and_empty_signatures_are_reported():
    problems = validate_rules({
        "signatures": [
            {"name": "Twice", "html": ["a"]},
            {"name": "Twice", "html": ["b"]},
            {"name": "Empty"},
            {"html": ["c"]},
        ],
        "server_hints": [{"match": "ghost"}],
        "extra": [],
    })

    assert any("duplicate" in p for p in problems)
    assert any("Empty" in p for p in problems)
    assert any("signatures[3]" in p for p in problems)
    assert any("server_hints[0]" in p for p in problems)
    assert any("unknown sections" in p for p in problems)


def test_build_registry_raises_with_all_problems():
    with pytest.raises(RulesError) as excinfo:
        build_registry({"signatures": [{"name": "Bad", "scripts": ["[", "("]}]})

    assert len(excinfo.value.problems) == 2


def test_missing_rules_file(tmp_path):
    with pytest.raises(RulesError):
        load_registry(str(tmp_path / "missing.yaml"))


def test_not_a_mapping():
    assert validate_rules(["React"]) != []


def test_pattern_overlaps():
    overlaps = detect_pattern_overlaps([
        {"name": "A", "html": ["shared"]},
        {"name": "B", "scripts": ["shared"]},
        {"name": "C", "html": ["own"]},
    ])

    assert overlaps == {"shared": ["A", "B"]}
