from datetime import datetime
from typing import Any, Iterable, Optional

from scroll_capture.types.feed_item import ExtractedItemRecord, ItemHandle
from scroll_capture.types.interfaces import ItemSampler
from scroll_capture.utils.logger import logger


class PositionCounter:
    """Monotonic first-seen position, starting at 0 for each run."""

    def __init__(self, start: int = 0):
        self._next = start

    def next(self) -> int:
        position = self._next
        self._next += 1
        return position

    @property
    def value(self) -> int:
        return self._next


class ItemDatabase:
    """Fingerprint -> record map. The first record stored under a fingerprint is kept."""

    def __init__(self):
        self._records: dict[str, ExtractedItemRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._records

    def get(self, fingerprint: str) -> Optional[ExtractedItemRecord]:
        return self._records.get(fingerprint)

    def add(self, fingerprint: str, record: ExtractedItemRecord) -> bool:
        if fingerprint in self._records:
            return False
        self._records[fingerprint] = record
        return True

    def fingerprints(self) -> list[str]:
        return list(self._records)

    def records(self) -> list[ExtractedItemRecord]:
        return list(self._records.values())


async def collate(
    database: ItemDatabase,
    raw_samples: Iterable[ItemHandle],
    position_counter: PositionCounter,
    sampler: ItemSampler,
) -> int:
    """Merge one probe sample into the database, in probe order.

    Handles the sampler cannot read (detached or recycled elements) are logged
    and skipped.

    Returns:
        Number of records newly admitted
    """
    added = 0
    for handle in raw_samples:
        try:
            identifier = await sampler.to_identifier(handle)
            if identifier is None:
                continue
            payload = await sampler.to_payload(handle)
            fingerprint = sampler.fingerprint(identifier, payload)
        except Exception as e:
            logger.warning(f"Failed to sample item {handle.index}: {e}")
            continue

        if fingerprint in database:
            continue

        position = position_counter.next()
        record = ExtractedItemRecord(
            payload=payload,
            identifier=identifier.model_copy(update={"first_seen_position": position}),
            first_seen_position=position,
            captured_at=datetime.now(),
        )
        database.add(fingerprint, record)
        added += 1

    return added


def finalize(database: ItemDatabase) -> list[Any]:
    """Payloads in first-seen order."""
    records = sorted(database.records(), key=lambda record: record.first_seen_position)
    return [record.payload for record in records]
