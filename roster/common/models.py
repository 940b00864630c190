"""Data models shared by the cache, the sources and the refresh coordinator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from roster.common.constants import SUPPORTED_REGIONS
from roster.common.errors import RecordValidationError
from roster.common.time_utils import parse_iso, to_iso


class DataSource(str, Enum):
    """Fallback tier that produced the records currently held."""

    LIVE = "live"
    CACHE = "cache"
    DEFAULTS = "defaults"


class RoleFilter(str, Enum):
    MINISTER = "minister"
    SHADOW_MINISTER = "shadow-minister"
    NEITHER = "neither"


@dataclass(frozen=True)
class Contact:
    email: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class RoleFlags:
    is_minister: bool = False
    is_shadow_minister: bool = False

    def matches(self, role: RoleFilter) -> bool:
        if role is RoleFilter.MINISTER:
            return self.is_minister
        if role is RoleFilter.SHADOW_MINISTER:
            return self.is_shadow_minister
        return not self.is_minister and not self.is_shadow_minister


def _optional_str(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _required_str(raw: Mapping[str, Any], key: str) -> str:
    value = _optional_str(raw, key)
    if value is None:
        raise RecordValidationError(f"Record field '{key}' is required")
    return value


@dataclass(frozen=True)
class Record:
    """One directory entry: a parliamentarian and their affiliation data."""

    id: str
    display_name: str
    category: str
    region: str
    last_updated: datetime
    locality: str | None = None
    sub_region: str | None = None
    group: str | None = None
    contact: Contact = field(default_factory=Contact)
    image_ref: str | None = None
    tags: tuple[str, ...] = ()
    role_flags: RoleFlags = field(default_factory=RoleFlags)

    def search_fields(self) -> tuple[str, ...]:
        values = [self.display_name, self.category, self.locality or "", self.sub_region or ""]
        values.extend(self.tags)
        return tuple(value.lower() for value in values if value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "category": self.category,
            "region": self.region,
            "locality": self.locality,
            "sub_region": self.sub_region,
            "group": self.group,
            "contact": {"email": self.contact.email, "phone": self.contact.phone},
            "image_ref": self.image_ref,
            "tags": list(self.tags),
            "role_flags": {
                "is_minister": self.role_flags.is_minister,
                "is_shadow_minister": self.role_flags.is_shadow_minister,
            },
            "last_updated": to_iso(self.last_updated),
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "Record":
        """Validate an untyped mapping and convert it into a Record.

        Raises RecordValidationError when a required field is missing, the
        region is not a known state or territory code, or a nested value has
        the wrong shape.
        """
        if not isinstance(raw, Mapping):
            raise RecordValidationError(f"Record payload must be a mapping, got {type(raw).__name__}")

        record_id = _required_str(raw, "id")
        region = _required_str(raw, "region").upper()
        if region not in SUPPORTED_REGIONS:
            raise RecordValidationError(f"Record {record_id} has unknown region: {region}")

        contact_raw = raw.get("contact") or {}
        flags_raw = raw.get("role_flags") or {}
        if not isinstance(contact_raw, Mapping) or not isinstance(flags_raw, Mapping):
            raise RecordValidationError(f"Record {record_id} has malformed contact or role_flags")

        tags_raw = raw.get("tags") or []
        if isinstance(tags_raw, str) or not isinstance(tags_raw, (list, tuple)):
            raise RecordValidationError(f"Record {record_id} tags must be a list")

        try:
            last_updated = parse_iso(raw.get("last_updated"))
        except (TypeError, ValueError) as exc:
            raise RecordValidationError(f"Record {record_id} has invalid last_updated") from exc
        if last_updated is None:
            raise RecordValidationError(f"Record field 'last_updated' is required for {record_id}")

        return cls(
            id=record_id,
            display_name=_required_str(raw, "display_name"),
            category=_required_str(raw, "category"),
            region=region,
            locality=_optional_str(raw, "locality"),
            sub_region=_optional_str(raw, "sub_region"),
            group=_optional_str(raw, "group"),
            contact=Contact(
                email=_optional_str(contact_raw, "email"),
                phone=_optional_str(contact_raw, "phone"),
            ),
            image_ref=_optional_str(raw, "image_ref"),
            tags=tuple(str(tag).strip() for tag in tags_raw if str(tag).strip()),
            role_flags=RoleFlags(
                is_minister=bool(flags_raw.get("is_minister", False)),
                is_shadow_minister=bool(flags_raw.get("is_shadow_minister", False)),
            ),
            last_updated=last_updated,
        )


@dataclass(frozen=True)
class FreshnessMetadata:
    """Bookkeeping for when the roster was last and will next be refreshed."""

    last_updated_at: datetime | None = None
    next_update_at: datetime | None = None
    update_in_progress: bool = False
    last_update_succeeded: bool = False
    last_error: str | None = None
    last_attempt_at: datetime | None = None
    source: DataSource | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_updated_at": to_iso(self.last_updated_at),
            "next_update_at": to_iso(self.next_update_at),
            "update_in_progress": self.update_in_progress,
            "last_update_succeeded": self.last_update_succeeded,
            "last_error": self.last_error,
            "last_attempt_at": to_iso(self.last_attempt_at),
            "source": self.source.value if self.source is not None else None,
        }

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "FreshnessMetadata":
        source = raw.get("source")
        last_error = raw.get("last_error")
        if last_error is not None and not isinstance(last_error, str):
            raise TypeError(f"last_error must be a string, got {type(last_error).__name__}")
        return cls(
            last_updated_at=parse_iso(raw.get("last_updated_at")),
            next_update_at=parse_iso(raw.get("next_update_at")),
            update_in_progress=bool(raw.get("update_in_progress", False)),
            last_update_succeeded=bool(raw.get("last_update_succeeded", False)),
            last_error=last_error,
            last_attempt_at=parse_iso(raw.get("last_attempt_at")),
            source=DataSource(source) if source else None,
        )
