"""
Rule-based full-content extraction.

This module applies a declarative extraction rule to an HTML document:
1. Collect every element matching the rule's content selector
2. Serialize them, in document order, into one HTML string
3. Resolve the rule's next-link selector to an absolute next-page URL

A readability-based extractor is available as an optional fallback for
pages no rule covers.
"""

from __future__ import annotations

import logging
from typing import Callable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from readability import Document

from ..core.types import FullContent

logger = logging.getLogger(__name__)

# Extraction output has the same shape as a stored full-content page.
ExtractedContent = FullContent


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def extract_content(
    document: str | BeautifulSoup,
    base_url: str,
    content_selector: str,
    next_link_selector: str | None = None,
) -> ExtractedContent | None:
    """Extract content from a document using CSS selectors.

    Args:
        document: HTML text or an already parsed document
        base_url: URL the document was loaded from
        content_selector: Selector for the content elements
        next_link_selector: Optional selector for the next-page anchor

    Returns:
        ExtractedContent with the concatenated markup of all matched
        elements, or None if nothing matched. Malformed selectors count
        as no match.

    Examples:
        >>> extract_content(html, "https://example.com/a", "div.post", "a.next")
        FullContent(content='<div class="post">...</div>', url=..., next_page_url=...)
    """
    soup = parse_document(document) if isinstance(document, str) else document
    root = soup.body or soup

    content = "".join(str(node) for node in _try_select(root, content_selector))
    if not content:
        return None

    next_page_url = None
    if next_link_selector:
        next_page_url = _find_next_page_url(soup, root, base_url, next_link_selector)

    return ExtractedContent(content=content, url=base_url, next_page_url=next_page_url)


def extract_readable(document: str, base_url: str) -> ExtractedContent | None:
    """Extract the main article body with Mozilla's readability algorithm.

    Used only as a fallback when no extraction rule applies to a page.
    """
    try:
        content = Document(document).summary(html_partial=True)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Readability failed for %s: %s", base_url, exc)
        return None
    if not parse_document(content).get_text(strip=True):
        return None
    return ExtractedContent(content=content, url=base_url, next_page_url=None)


def get_fallback_extractor(name: str) -> Callable[[str, str], ExtractedContent | None] | None:
    """Get the fallback extractor function for a configured name."""
    if name == "readability":
        return extract_readable
    return None


def _try_select(root: Tag, selector: str) -> list[Tag]:
    try:
        return root.select(selector)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Selector %r could not be evaluated: %s", selector, exc)
        return []


def _find_next_page_url(
    soup: BeautifulSoup,
    root: Tag,
    base_url: str,
    selector: str,
) -> str | None:
    matches = _try_select(root, selector)
    if not matches:
        return None
    node = matches[0]
    href = node.get("href") if node.name == "a" else None
    if not href or not href.strip():
        return None
    return urljoin(_document_base_url(soup, base_url), href.strip())


def _document_base_url(soup: BeautifulSoup, base_url: str) -> str:
    """Honor a <base href> element the way browsers do."""
    base = soup.find("base", href=True)
    if base is None:
        return base_url
    return urljoin(base_url, base["href"])
