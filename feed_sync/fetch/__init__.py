"""
Article page fetching.

This package handles HTTP fetching and text decoding
of pages used for full-content extraction.
"""

from .fetcher import PageFetcher, decode_response_text

__all__ = [
    "PageFetcher",
    "decode_response_text",
]
