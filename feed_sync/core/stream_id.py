"""Parsing of local stream ids into a closed set of stream kinds.

Local ids come in four shapes:
- "feed/<url>": a single feed
- "user/<uid>/category/<label>": a category (any "user/" id)
- "all": every subscribed feed
- "pins": entries carrying the saved tag

The "all" and "pins" pseudo-streams map onto per-user Feedly ids, so they
are resolved against the authenticated user on every request.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import InvalidStreamIdError

ALL_STREAM_ID = "all"
PINS_STREAM_ID = "pins"


@dataclass(frozen=True)
class FeedStreamId:
    value: str


@dataclass(frozen=True)
class CategoryStreamId:
    value: str


@dataclass(frozen=True)
class AllStreamId:
    value: str = ALL_STREAM_ID


@dataclass(frozen=True)
class PinsStreamId:
    value: str = PINS_STREAM_ID


StreamRef = FeedStreamId | CategoryStreamId | AllStreamId | PinsStreamId


def parse_stream_id(stream_id: str) -> StreamRef:
    """Parse a local stream id.

    Raises:
        InvalidStreamIdError: If the id has none of the known shapes
    """
    if stream_id.startswith("feed/"):
        return FeedStreamId(stream_id)
    if stream_id.startswith("user/"):
        return CategoryStreamId(stream_id)
    if stream_id == ALL_STREAM_ID:
        return AllStreamId()
    if stream_id == PINS_STREAM_ID:
        return PinsStreamId()
    raise InvalidStreamIdError(f"Unknown stream id: {stream_id!r}")


def category_stream_id(user_id: str, label: str) -> str:
    return f"user/{user_id}/category/{label}"


def all_category_id(user_id: str) -> str:
    return f"user/{user_id}/category/global.all"


def saved_tag_id(user_id: str) -> str:
    return f"user/{user_id}/tag/global.saved"


def to_remote_stream_id(ref: StreamRef, user_id: str) -> str:
    """Return the Feedly stream id for a parsed local id."""
    if isinstance(ref, AllStreamId):
        return all_category_id(user_id)
    if isinstance(ref, PinsStreamId):
        return saved_tag_id(user_id)
    return ref.value
