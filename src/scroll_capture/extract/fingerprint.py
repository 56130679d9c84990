import hashlib
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Iterable, Optional

from scroll_capture.types.feed_item import ItemHandle, ItemIdentifier
from scroll_capture.utils.timestamp import truncate_to_date

# Characters of text mixed into a transient handle
HANDLE_TEXT_PREFIX = 50


def normalize_text(text: Any) -> str:
    """Collapse whitespace and case-fold."""
    if text is None:
        return ""
    return " ".join(str(text).split()).casefold()


def content_hash(text: Any) -> str:
    return hashlib.sha1(normalize_text(text).encode("utf-8")).hexdigest()[:16]


def transient_handle(handle: ItemHandle, text: Optional[str] = None) -> str:
    """Identity for a handle within one sample: its DOM id, else position plus content."""
    if handle.dom_id:
        return handle.dom_id
    prefix = (text if text is not None else handle.text or "")[:HANDLE_TEXT_PREFIX]
    return f"item_{round(handle.rect.top)}_{round(handle.rect.left)}_{content_hash(prefix)}"


def build_identifier(
    handle: ItemHandle,
    source_id: Optional[str] = None,
    url: Optional[str] = None,
    timestamp: Optional[str] = None,
    text: Optional[str] = None,
) -> ItemIdentifier:
    body = text if text is not None else handle.text
    return ItemIdentifier(
        source_id=source_id or None,
        url=url,
        timestamp=timestamp,
        content_hash=content_hash(body),
        transient_handle=transient_handle(handle, body),
    )


def get_field(payload: Any, path: str) -> Any:
    """Read a dotted field path from a mapping or attribute-style payload."""
    value = payload
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


class CanonicalFingerprint:
    """Fingerprint from normalized text, author handle and calendar date.

    Live counters (likes, replies, views) change between samples of the same
    item, so they are left out unless named in `volatile_fields`.

    Relative ages ("23h") are resolved against `now`, fixed when the policy is
    built, so samples taken on either side of midnight agree on the date.
    """

    def __init__(
        self,
        text_field: str = "text",
        author_field: str = "author",
        timestamp_field: str = "created_at",
        volatile_fields: Iterable[str] = (),
        include_source_id: bool = False,
        now: Optional[datetime] = None,
    ):
        self.text_field = text_field
        self.author_field = author_field
        self.timestamp_field = timestamp_field
        self.volatile_fields = tuple(volatile_fields)
        self.include_source_id = include_source_id
        self.now = now or datetime.now()

    def __call__(self, identifier: ItemIdentifier, payload: Any) -> str:
        text = normalize_text(get_field(payload, self.text_field))
        author = normalize_text(get_field(payload, self.author_field))
        if not text and not author:
            return f"id:{identifier.key}"

        raw_timestamp = get_field(payload, self.timestamp_field) or identifier.timestamp
        parts = [author, truncate_to_date(raw_timestamp, self.now), content_hash(text)]
        if self.include_source_id and identifier.source_id:
            parts.insert(0, identifier.source_id)
        parts.extend(str(get_field(payload, name)) for name in self.volatile_fields)
        return "|".join(parts)
