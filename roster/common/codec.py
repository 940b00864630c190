"""JSON serialisation for persisted cache generations and freshness metadata."""

from __future__ import annotations

import json
from typing import Iterable

from roster.common.constants import CACHE_FORMAT_VERSION
from roster.common.errors import ParseFailure, RecordValidationError
from roster.common.models import FreshnessMetadata, Record


def encode_records(records: Iterable[Record]) -> str:
    payload = {
        "version": CACHE_FORMAT_VERSION,
        "records": [record.to_dict() for record in records],
    }
    return json.dumps(payload, ensure_ascii=False, sort_keys=True)


def decode_records(blob: str) -> list[Record]:
    """Decode a whole generation; any bad entry rejects the blob."""
    try:
        payload = json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise ParseFailure("Cached records blob is not valid JSON") from exc

    if not isinstance(payload, dict) or payload.get("version") != CACHE_FORMAT_VERSION:
        raise ParseFailure("Cached records blob has an unsupported layout")
    raw_records = payload.get("records")
    if not isinstance(raw_records, list):
        raise ParseFailure("Cached records blob has no record list")

    try:
        return [Record.from_dict(raw) for raw in raw_records]
    except (RecordValidationError, TypeError, ValueError) as exc:
        raise ParseFailure(f"Cached record rejected: {exc}") from exc


def encode_metadata(metadata: FreshnessMetadata) -> str:
    return json.dumps(metadata.to_dict(), ensure_ascii=False, sort_keys=True)


def decode_metadata(blob: str) -> FreshnessMetadata:
    try:
        payload = json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise ParseFailure("Cached metadata blob is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ParseFailure("Cached metadata blob must be an object")
    try:
        return FreshnessMetadata.from_dict(payload)
    except (TypeError, ValueError) as exc:
        raise ParseFailure(f"Cached metadata rejected: {exc}") from exc
