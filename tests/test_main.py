import json

import httpx
from unittest.mock import AsyncMock, patch

from main import main

PAGE = """
<html><head>
<title>Storefront</title>
<meta name="keywords" content="Shopify theme">
<script src="https://cdn.shopify.com/s/files/1/theme.js"></script>
<script src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>
<script>window.dataLayer = [];</script>
</head><body></body></html>
"""


async def fake_fetch(url, timeout=None, headers=None):
    return httpx.Response(
        200,
        content=PAGE.encode("utf-8"),
        headers={"content-type": "text/html"},
        request=httpx.Request("GET", url),
    )


def test_list_signatures(capsys):
    assert main(["--list-signatures"]) == 0

    out = capsys.readouterr().out
    assert "React (framework)" in out
    assert "cdn.jsdelivr.net" in out


def test_crawl_writes_one_record_per_page(tmp_path):
    output = tmp_path / "records.jsonl"
    with patch("fetch.crawler.fetch_url", new=AsyncMock(side_effect=fake_fetch)):
        code = main(["https://store.example.com", "--output", str(output), "--log-level", "WARNING"])

    assert code == 0
    records = [json.loads(line) for line in output.read_text(encoding="utf-8").splitlines()]
    assert len(records) == 1
    record = records[0]
    assert record["url"] == "https://store.example.com/"
    assert record["title"] == "Storefront"
    assert record["technologies"][:2] == ["Shopify", "Google Analytics"]
    assert record["cdns"] == ["cdn.shopify.com", "www.googletagmanager.com"]
    assert record["analytics"] == ["Google Analytics"]
    assert record["server"] == "Shopify"
    assert record["detected_via"] == ["cdn-hosts", "analytics-snippets", "inline-script-snippets"]


def test_unknown_input_key_exits_with_error(tmp_path):
    path = tmp_path / "input.json"
    path.write_text(json.dumps({"maxRequestsPerCrawl": 5}))

    assert main(["--input", str(path)]) == 2


def test_invalid_rules_file_exits_with_error(tmp_path):
    path = tmp_path / "rules.yaml"
    path.write_text("signatures:\n  - name: Bad\n    html: ['(']\n")

    assert main(["--rules", str(path), "--list-signatures"]) == 2


def test_list_signatures_follows_rules_file_order(tmp_path, capsys):
    path = tmp_path / "rules.yaml"
    path.write_text(
        "signatures:\n"
        "  - name: Svelte\n    category: framework\n    html: ['svelte-']\n"
        "  - name: Alpine.js\n    html: ['x-data=']\n"
    )

    assert main(["--rules", str(path), "--list-signatures"]) == 0

    out = capsys.readouterr().out
    assert out.index("Svelte (framework)") < out.index("Alpine.js (uncategorized)")
