from typing import Any, Callable, Optional

from pydantic import BaseModel

from scroll_capture.extract.extract_field import extract_field
from scroll_capture.extract.fingerprint import CanonicalFingerprint, build_identifier
from scroll_capture.types.extract_field import ExtractField
from scroll_capture.types.feed_item import ItemHandle, ItemIdentifier
from scroll_capture.utils.logger import logger


def schema_fields(schema: type[BaseModel]) -> dict[str, ExtractField]:
    """Item fields declared on a schema class, container excluded."""
    return {
        name: field
        for name, field in schema.__dict__.items()
        if isinstance(field, ExtractField) and not field.is_container
    }


def container_selector(schema: type[BaseModel]) -> str:
    for field in schema.__dict__.values():
        if isinstance(field, ExtractField) and field.is_container:
            return field.selector
    raise ValueError(f"No container selector found in schema {schema.__name__}")


class SchemaSampler:
    """ItemSampler that reads each item with an ExtractField schema.

    The payload is a dict keyed by field name. A field that fails to extract
    is set to None; the item is still kept.
    """

    def __init__(
        self,
        schema: type[BaseModel],
        fingerprint: Optional[Callable[[ItemIdentifier, Any], str]] = None,
        url_field: str = "url",
        timestamp_field: str = "created_at",
    ):
        self.schema = schema
        self.fields = schema_fields(schema)
        self.url_field = url_field
        self.timestamp_field = timestamp_field
        self._fingerprint = fingerprint or CanonicalFingerprint(timestamp_field=timestamp_field)
        self._source_id_field = next(
            (name for name, field in self.fields.items() if field.is_source_id), None
        )
        self._last_handle: Optional[ItemHandle] = None
        self._last_payload: Optional[dict[str, Any]] = None

    async def to_identifier(self, handle: ItemHandle) -> Optional[ItemIdentifier]:
        if handle.element is None:
            return None
        payload = await self.to_payload(handle)
        source_id = payload.get(self._source_id_field) if self._source_id_field else None
        return build_identifier(
            handle,
            source_id=str(source_id) if source_id else None,
            url=payload.get(self.url_field),
            timestamp=_as_str(payload.get(self.timestamp_field)),
        )

    async def to_payload(self, handle: ItemHandle) -> dict[str, Any]:
        # to_identifier and to_payload are called back to back for the same handle
        if handle is self._last_handle and self._last_payload is not None:
            return self._last_payload

        data: dict[str, Any] = {}
        for name, field in self.fields.items():
            try:
                data[name] = await extract_field(handle.element, field, name)
            except Exception as e:
                logger.error(f"Failed to extract field {name}: {e}")
                data[name] = None

        self._last_handle = handle
        self._last_payload = data
        return data

    def fingerprint(self, identifier: ItemIdentifier, payload: Any) -> str:
        return self._fingerprint(identifier, payload)


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
