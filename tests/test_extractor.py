import pytest

from core.extractor import INLINE_SNIPPET_LENGTH, extract_evidence, parse_html


@pytest.fixture
def sample_html():
    return """
    <html>
        <head>
            <title>
                Acme Store
            </title>
            <meta name="Generator" content="Drupal 10">
            <meta name="keywords" content="boots, outdoor">
            <link rel="preconnect" href="https://fonts.gstatic.com">
            <link rel="dns-prefetch" href="//cdn.jsdelivr.net">
            <link rel="preload" as="script" href="/static/main.js">
            <link rel="stylesheet" href="/static/site.css">
            <script src="/static/main.js"></script>
            <script src="https://unpkg.com/htmx.org@1.9.0"></script>
            <script src=""></script>
            <script>
                window.dataLayer = window.dataLayer || [];
            </script>
            <script type="application/ld+json">{"@type": "Organization"}</script>
        </head>
        <body><h1>Welcome</h1></body>
    </html>
    """


def test_extracts_all_fields(sample_html):
    bundle = extract_evidence(sample_html, "https://acme.example/")

    assert bundle.page_url == "https://acme.example/"
    assert bundle.raw_html == sample_html
    assert bundle.title == "Acme Store"
    assert bundle.meta_generator == "Drupal 10"
    assert bundle.meta_keywords == "boots, outdoor"
    assert bundle.external_script_urls == ("/static/main.js", "https://unpkg.com/htmx.org@1.9.0")
    assert bundle.resource_hint_urls == ("https://fonts.gstatic.com", "//cdn.jsdelivr.net", "/static/main.js")
    assert len(bundle.inline_script_snippets) == 2
    assert "window.dataLayer" in bundle.inline_script_snippets[0]
    assert bundle.inline_script_snippets[1] == '{"@type": "Organization"}'


def test_script_corpus_is_external_then_inline(sample_html):
    bundle = extract_evidence(sample_html, "https://acme.example/")

    assert bundle.script_corpus == bundle.external_script_urls + bundle.inline_script_snippets


def test_inline_snippets_are_truncated():
    body = "x" * 1000
    bundle = extract_evidence(f"<html><script>{body}</script></html>", "https://example.com/")

    assert bundle.inline_script_snippets == ("x" * INLINE_SNIPPET_LENGTH,)


def test_missing_elements_default_to_empty():
    bundle = extract_evidence("<html><body><p>plain</p></body></html>", "https://example.com/")

    assert bundle.title == ""
    assert bundle.meta_generator == ""
    assert bundle.meta_keywords == ""
    assert bundle.external_script_urls == ()
    assert bundle.inline_script_snippets == ()
    assert bundle.resource_hint_urls == ()


def test_empty_markup():
    bundle = extract_evidence("", "https://example.com/")

    assert bundle.raw_html == ""
    assert bundle.title == ""
    assert bundle.external_script_urls == ()


def test_generator_without_content_is_empty():
    bundle = extract_evidence('<html><head><meta name="generator"></head></html>', "https://example.com/")

    assert bundle.meta_generator == ""


def test_resource_hints_can_be_skipped(sample_html):
    bundle = extract_evidence(sample_html, "https://acme.example/", include_resource_hints=False)

    assert bundle.resource_hint_urls == ()
    assert bundle.external_script_urls


def test_accepts_parsed_document(sample_html):
    document = parse_html(sample_html)
    bundle = extract_evidence(document, "https://acme.example/")

    assert bundle.title == "Acme Store"
    assert "htmx.org" in bundle.raw_html
    assert bundle.external_script_urls[1] == "https://unpkg.com/htmx.org@1.9.0"


def test_field_failure_degrades_only_that_field(monkeypatch, sample_html):
    def boom(soup):
        raise ValueError("broken title")

    monkeypatch.setattr("core.extractor._title", boom)
    bundle = extract_evidence(sample_html, "https://acme.example/")

    assert bundle.title == ""
    assert bundle.meta_generator == "Drupal 10"
