"""Build an EvidenceBundle from page markup.

Every field is extracted on its own; a failure in one field degrades it to
the empty default and never aborts the page.
"""
import logging
from typing import Callable, List, Tuple, TypeVar, Union

from bs4 import BeautifulSoup

from core.context import EvidenceBundle

INLINE_SNIPPET_LENGTH = 200
RESOURCE_HINT_RELS = ("preconnect", "preload", "dns-prefetch")

logger = logging.getLogger(__name__)

T = TypeVar("T")


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html or "", "lxml")


def _safe(field_name: str, extract: Callable[[], T], default: T) -> T:
    try:
        value = extract()
    except Exception as e:
        logger.debug(f"Evidence field {field_name} unavailable: {e}")
        return default
    return default if value is None else value


def _meta_content(soup: BeautifulSoup, name: str) -> str:
    tag = soup.find("meta", attrs={"name": lambda v: bool(v) and v.strip().lower() == name})
    if tag is None:
        return ""
    return str(tag.get("content") or "")


def _title(soup: BeautifulSoup) -> str:
    tag = soup.find("title")
    return tag.get_text().strip() if tag else ""


def _external_scripts(soup: BeautifulSoup) -> Tuple[str, ...]:
    srcs: List[str] = []
    for tag in soup.select("script[src]"):
        src = tag.get("src")
        if src and str(src).strip():
            srcs.append(str(src))
    return tuple(srcs)


def _inline_scripts(soup: BeautifulSoup) -> Tuple[str, ...]:
    return tuple(
        tag.get_text()[:INLINE_SNIPPET_LENGTH]
        for tag in soup.select("script:not([src])")
    )


def _resource_hints(soup: BeautifulSoup) -> Tuple[str, ...]:
    hrefs: List[str] = []
    for tag in soup.find_all("link", href=True):
        # bs4 parses rel as a multi-valued attribute
        rels = {r.lower() for r in (tag.get("rel") or [])}
        if rels.intersection(RESOURCE_HINT_RELS) and tag["href"]:
            hrefs.append(str(tag["href"]))
    return tuple(hrefs)


def extract_evidence(
    markup: Union[str, BeautifulSoup],
    page_url: str,
    include_resource_hints: bool = True,
) -> EvidenceBundle:
    """Extract the classification evidence of one page.

    Args:
        markup: Raw HTML or an already parsed document
        page_url: Final URL of the page, used later as the resolution base
        include_resource_hints: Collect preconnect/preload/dns-prefetch links

    Returns:
        EvidenceBundle with every field populated or defaulted
    """
    if isinstance(markup, BeautifulSoup):
        soup = markup
        raw_html = _safe("raw_html", lambda: str(soup), "")
    else:
        raw_html = markup or ""
        soup = _safe("document", lambda: parse_html(raw_html), None)
        if soup is None:
            return EvidenceBundle(page_url=page_url or "", raw_html=raw_html)

    bundle = EvidenceBundle(
        page_url=page_url or "",
        raw_html=raw_html,
        title=_safe("title", lambda: _title(soup), ""),
        meta_generator=_safe("meta_generator", lambda: _meta_content(soup, "generator"), ""),
        external_script_urls=_safe("external_script_urls", lambda: _external_scripts(soup), ()),
        inline_script_snippets=_safe("inline_script_snippets", lambda: _inline_scripts(soup), ()),
        resource_hint_urls=(
            _safe("resource_hint_urls", lambda: _resource_hints(soup), ())
            if include_resource_hints else ()
        ),
        meta_keywords=_safe("meta_keywords", lambda: _meta_content(soup, "keywords"), ""),
    )
    logger.debug(
        f"Extracted evidence for {bundle.page_url}: {len(bundle.external_script_urls)} scripts, "
        f"{len(bundle.inline_script_snippets)} inline, {len(bundle.resource_hint_urls)} hints"
    )
    return bundle
