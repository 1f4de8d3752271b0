"""
Article page fetching.

Pages are fetched with an async httpx client that follows redirects,
retries transport errors with a linear backoff, and hands back the raw
bytes so that decoding can honor the page's declared charset.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import re

import httpx
from bs4.dammit import EncodingDetector

from ..config import FetchConfig
from ..core.types import PageResponse

logger = logging.getLogger(__name__)

_HEADER_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([^\s;\"']+)", re.IGNORECASE)


class PageFetcher:
    """Fetches article pages.

    Attributes:
        cfg: Fetch settings (timeout, retries, user agent, proxy trust)
        transport: Optional httpx transport, used by tests to stub the network
    """

    def __init__(self, cfg: FetchConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.cfg = cfg
        self.transport = transport

    async def fetch(self, url: str) -> PageResponse:
        """Fetch a URL, retrying transport errors.

        Non-success status codes are returned, not raised; the caller
        decides what a 404 means.

        Raises:
            httpx.HTTPError: If every attempt failed at the transport level
        """
        headers = {"User-Agent": self.cfg.user_agent}
        last_error: httpx.HTTPError | None = None

        for attempt in range(self.cfg.retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.cfg.timeout_seconds,
                    headers=headers,
                    follow_redirects=True,
                    trust_env=self.cfg.trust_env,
                    transport=self.transport,
                ) as client:
                    resp = await client.get(url)
                    return PageResponse(
                        url=str(resp.url),
                        status_code=resp.status_code,
                        headers={k.lower(): v for k, v in resp.headers.items()},
                        body=resp.content,
                    )
            except httpx.HTTPError as exc:
                last_error = exc
                logger.debug("Fetch attempt %d for %s failed: %s", attempt + 1, url, exc)
                if attempt < self.cfg.retries:
                    # Linear backoff: 0.5s, 1.0s, 1.5s...
                    await asyncio.sleep(0.5 * (attempt + 1))

        assert last_error is not None
        raise last_error


def decode_response_text(response: PageResponse) -> str:
    """Decode a page body to text.

    The charset is taken from the Content-Type header, then from the
    document's own declaration (``<meta charset>``, ``http-equiv`` or an
    XML prolog, as found by bs4), and defaults to UTF-8. Undecodable
    bytes are replaced.
    """
    charset = _charset_from_header(response.headers.get("content-type", ""))
    if charset is None:
        charset = EncodingDetector.find_declared_encoding(response.body, is_html=True)
    if charset is None or not _is_known_codec(charset):
        charset = "utf-8"
    return response.body.decode(charset, errors="replace")


def _charset_from_header(content_type: str) -> str | None:
    match = _HEADER_CHARSET_RE.search(content_type)
    return match.group(1) if match else None


def _is_known_codec(name: str) -> bool:
    try:
        codecs.lookup(name)
    except LookupError:
        return False
    return True
