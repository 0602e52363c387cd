"""Value normalizers for tags, locations and due dates.

Two validation modes:
- strict: invalid input raises ReminderValidationError (write path)
- lenient: invalid fields are dropped silently (reading stored data)
"""

import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union
from zoneinfo import ZoneInfo

from config import settings
from exceptions import ReminderValidationError
from schemas import ReminderLocation

PROXIMITY_VALUES = ("arriving", "leaving")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def normalize_tags(tags: Optional[Iterable[Any]]) -> List[str]:
    """Canonicalize tags.

    Trims each tag, strips leading '#', drops empties and de-duplicates
    case-insensitively. The first-seen casing and order are kept.

    Example:
        ["#A", "a", "B"] -> ["A", "B"]
    """
    if not tags:
        return []

    deduped = {}
    for tag in tags:
        if not isinstance(tag, str):
            continue
        normalized = tag.strip().lstrip("#")
        if not normalized:
            continue
        key = normalized.lower()
        if key not in deduped:
            deduped[key] = normalized

    return list(deduped.values())


def _number(value: Any, field: str, strict: bool) -> Optional[float]:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        if strict:
            raise ReminderValidationError(f"location.{field} must be a number")
        return None
    try:
        finite = math.isfinite(value)
    except OverflowError:
        # int too large to convert to float
        finite = False
    if not finite:
        if strict:
            raise ReminderValidationError(f"location.{field} must be a finite number")
        return None
    return value


def normalize_location(
    location: Union[ReminderLocation, Mapping[str, Any], None],
    strict: bool
) -> Optional[ReminderLocation]:
    """Validate a location and keep only well-formed fields.

    Args:
        location: ReminderLocation or a raw mapping (e.g. decoded JSON) with
            camelCase keys
        strict: Raise on invalid fields instead of dropping them

    Returns:
        ReminderLocation with at least one field, or None

    Raises:
        ReminderValidationError: strict mode only
    """
    if location is None:
        return None
    if isinstance(location, ReminderLocation):
        location = location.model_dump(by_alias=True, exclude_none=True)
    if not isinstance(location, Mapping):
        if strict:
            raise ReminderValidationError("location must be an object")
        return None

    normalized = {}

    title = location.get("title")
    if isinstance(title, str) and title.strip():
        normalized["title"] = title.strip()
    elif title is not None and not isinstance(title, str) and strict:
        raise ReminderValidationError("location.title must be a string")

    if location.get("latitude") is not None:
        latitude = _number(location["latitude"], "latitude", strict)
        if latitude is not None:
            if -90 <= latitude <= 90:
                normalized["latitude"] = latitude
            elif strict:
                raise ReminderValidationError("location.latitude must be between -90 and 90")

    if location.get("longitude") is not None:
        longitude = _number(location["longitude"], "longitude", strict)
        if longitude is not None:
            if -180 <= longitude <= 180:
                normalized["longitude"] = longitude
            elif strict:
                raise ReminderValidationError("location.longitude must be between -180 and 180")

    if location.get("radiusMeters") is not None:
        radius = _number(location["radiusMeters"], "radiusMeters", strict)
        if radius is not None:
            if radius > 0:
                normalized["radiusMeters"] = radius
            elif strict:
                raise ReminderValidationError("location.radiusMeters must be greater than 0")

    proximity = location.get("proximity")
    if proximity in PROXIMITY_VALUES:
        normalized["proximity"] = proximity
    elif proximity is not None and strict:
        raise ReminderValidationError('location.proximity must be "arriving" or "leaving"')

    if ("latitude" in normalized) != ("longitude" in normalized):
        if strict:
            raise ReminderValidationError(
                "location.latitude and location.longitude must be provided together"
            )
        normalized.pop("latitude", None)
        normalized.pop("longitude", None)

    if not normalized:
        return None

    return ReminderLocation.model_validate(normalized)


def _local_zone():
    if settings.TIMEZONE:
        return ZoneInfo(settings.TIMEZONE)
    return None


def local_now() -> datetime:
    """Current time in the zone naive due dates are read in."""
    zone = _local_zone()
    return datetime.now(zone) if zone else datetime.now().astimezone()


def _parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if dt.tzinfo is None:
        zone = _local_zone()
        # astimezone() on a naive value assumes system local time
        dt = dt.replace(tzinfo=zone) if zone else dt.astimezone()
    return dt


def parse_due_date(value: str) -> datetime:
    """Parse a caller-supplied due date (strict).

    Accepts ISO 8601 dates and datetimes, e.g. "2025-11-06",
    "2025-11-06T15:00:00", "2025-11-06T15:00:00Z". Values without an
    offset are read in settings.TIMEZONE, or system local time if unset.

    Raises:
        ReminderValidationError: If the string is not a valid date
    """
    try:
        return _parse_iso(value)
    except (TypeError, ValueError, AttributeError, OverflowError) as e:
        raise ReminderValidationError(
            f'Invalid due date "{value}". Use an ISO-compatible date string.'
        ) from e


def normalize_due_date(value: Union[datetime, str, None]) -> Optional[datetime]:
    """Turn a stored due date into an aware datetime, or None.

    The native store reports "no due date" as the Unix epoch, so an
    epoch-zero value is treated the same as a missing or unparsable one.
    """
    if not value:
        return None

    if isinstance(value, str):
        try:
            dt = _parse_iso(value)
        except (ValueError, OverflowError, OSError):
            return None
    elif isinstance(value, datetime):
        dt = value if value.tzinfo else value.astimezone()
    else:
        return None

    if dt == EPOCH:
        return None
    return dt


def format_due_date(value: Union[datetime, str, None]) -> Optional[str]:
    """ISO 8601 string in UTC for a stored due date, or None."""
    dt = normalize_due_date(value)
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')
