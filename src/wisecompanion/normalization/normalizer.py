"""Activity normalization module for wisecompanion.

Turns raw Airtable records into :class:`CanonicalActivity` values. All field
spelling variants are resolved here, once, so that the published snapshot and
everything downstream of it only ever sees the canonical shape.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, List, Mapping, Optional

from wisecompanion.countdown import parse_date
from wisecompanion.normalization.reference_data import (
    CATEGORY_TRANSLATIONS,
    DEFAULT_DESCRIPTION,
    DEFAULT_ICON,
    DEFAULT_LINK,
    DEFAULT_NAME,
    DEFAULT_SOURCE_APP,
    DEFAULT_TARGET_APP,
    FIELD_ALIASES,
)
from wisecompanion.normalization.schema import CanonicalActivity, RawRecord

LOGGER = logging.getLogger(__name__)

RecordPredicate = Callable[[RawRecord], bool]


def _lookup(fields: Mapping[str, Any], field: str) -> Any:
    """Return the first present value among the known spellings of ``field``."""

    for key in FIELD_ALIASES[field]:
        value = fields.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    """Coerce a field value into stripped text, or ``None`` when empty.

    Lookup and multi-select fields arrive as lists; the first non-empty item wins.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (list, tuple)):
        for item in value:
            text = _text(item)
            if text:
                return text
        return None
    text = str(value).strip()
    return text or None


def normalize_categories(value: Any, translations: Mapping[str, str] | None = None) -> List[str]:
    """Translate a raw category value into canonical tags.

    Args:
        value: A single label, a list of labels, or ``None``.
        translations: Label to tag table; defaults to ``CATEGORY_TRANSLATIONS``.

    Returns:
        Tags in first-seen order without duplicates. Labels missing from the
        table are kept, trimmed, so new source labels stay visible.
    """

    table = CATEGORY_TRANSLATIONS if translations is None else translations
    if value is None:
        labels: Iterable[Any] = ()
    elif isinstance(value, (list, tuple)):
        labels = value
    else:
        labels = (value,)

    tags: List[str] = []
    seen = set()
    for label in labels:
        if label is None:
            continue
        cleaned = str(label).strip()
        if not cleaned:
            continue
        tag = table.get(cleaned, cleaned)
        if tag in seen:
            continue
        seen.add(tag)
        tags.append(tag)
    return tags


def normalize_end_date(value: Any, *, record_id: str | None = None) -> Optional[str]:
    """Return ``value`` as ``YYYY-MM-DD``, or ``None`` when absent or unparseable."""

    text = _text(value)
    if text is None:
        return None
    parsed = parse_date(text)
    if parsed is None:
        LOGGER.warning("Ignoring unparseable end date %r on record %s", value, record_id)
        return None
    return parsed.isoformat()


def normalize_record(record: RawRecord, *, translations: Mapping[str, str] | None = None) -> CanonicalActivity:
    """Map one raw record onto the canonical activity shape, applying defaults."""

    fields = record.fields or {}
    raw_source_app = _text(_lookup(fields, "source_app"))
    return CanonicalActivity(
        id=record.id,
        name=_text(_lookup(fields, "name")) or DEFAULT_NAME,
        description=_text(_lookup(fields, "description")) or DEFAULT_DESCRIPTION,
        icon=_text(_lookup(fields, "icon")) or DEFAULT_ICON,
        link=_text(_lookup(fields, "link")) or DEFAULT_LINK,
        categories=normalize_categories(_lookup(fields, "categories"), translations),
        source_app=raw_source_app or DEFAULT_SOURCE_APP,
        target_app=_text(_lookup(fields, "target_app")) or raw_source_app or DEFAULT_TARGET_APP,
        special_note=_text(_lookup(fields, "special_note")),
        end_date=normalize_end_date(_lookup(fields, "end_date"), record_id=record.id),
        steps_text=_text(_lookup(fields, "steps_text")),
    )


def normalize_records(
    records: Iterable[RawRecord],
    *,
    translations: Mapping[str, str] | None = None,
    predicate: RecordPredicate | None = None,
    skipped: List[str] | None = None,
) -> List[CanonicalActivity]:
    """Normalize a batch of raw records.

    Args:
        records: Raw records in upstream order.
        translations: Category label table passed to :func:`normalize_categories`.
        predicate: Optional filter applied to each raw record before mapping.
        skipped: When given, receives the id of every record the predicate
            rejected or that repeated an earlier id.

    Returns:
        Canonical activities in upstream order. A record whose id was already
        seen is dropped so ids stay unique.
    """

    activities: List[CanonicalActivity] = []
    seen_ids = set()
    for record in records:
        if predicate is not None and not predicate(record):
            if skipped is not None:
                skipped.append(record.id)
            continue
        if record.id in seen_ids:
            LOGGER.warning("Dropping duplicate record id %s", record.id)
            if skipped is not None:
                skipped.append(record.id)
            continue
        seen_ids.add(record.id)
        activities.append(normalize_record(record, translations=translations))
    return activities


def field_equals(field: str, expected: str) -> RecordPredicate:
    """Build a predicate that keeps records whose ``field`` text equals ``expected``.

    ``field`` is a literal Airtable field name, for example ``Status``.
    """

    def _predicate(record: RawRecord) -> bool:
        return _text(record.fields.get(field)) == expected

    return _predicate


__all__ = [
    "RecordPredicate",
    "field_equals",
    "normalize_categories",
    "normalize_end_date",
    "normalize_record",
    "normalize_records",
]
