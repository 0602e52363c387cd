"""Pydantic schemas for Reminders MCP Service.

Two families of models live here:
- Store rows (StoreList, StoreItem, ReminderCreatePayload): what crosses the
  boundary to the native reminders store. StoreItem only carries the fields
  that were requested, everything else stays None.
- Public records and requests (ReminderRecord, ReminderLocation,
  ReminderCreate, ReminderAttributesUpdate): what callers see and send.

IMPORTANT: Location range checks are NOT declared on ReminderLocation. They
live in normalizers.normalize_location so the same payload can be rejected
on a write (strict) and quietly cleaned on a read (lenient).
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Literal, Optional, Union


class ReminderLocation(BaseModel):
    """Geofence attached to a reminder. All fields optional."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, description="Place name, e.g. 'Office'")
    latitude: Optional[float] = Field(None, description="Latitude, -90 to 90")
    longitude: Optional[float] = Field(None, description="Longitude, -180 to 180")
    radius_meters: Optional[float] = Field(
        None,
        alias="radiusMeters",
        description="Geofence radius in meters, greater than 0"
    )
    proximity: Optional[str] = Field(
        None,
        description="Trigger on 'arriving' or 'leaving'"
    )

    def to_payload(self) -> dict:
        """Compact JSON-ready dict with camelCase keys and no empty fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ReminderMetadata(BaseModel):
    """Structured attributes embedded in the notes field."""

    tags: List[str] = Field(default_factory=list)
    location: Optional[ReminderLocation] = None

    def is_empty(self) -> bool:
        return not self.tags and self.location is None


class ReminderRecord(BaseModel):
    """Decoded reminder as returned to callers."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    completed: bool = False
    due_date: Optional[str] = Field(None, alias="dueDate", description="ISO 8601 or null")
    flagged: bool = False
    priority: int = 0
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    location: Optional[ReminderLocation] = None

    def to_payload(self) -> dict:
        payload = self.model_dump(by_alias=True, exclude={"location"})
        payload["location"] = self.location.to_payload() if self.location else None
        return payload


class StoreList(BaseModel):
    """A real list as enumerated by the native store."""

    id: str
    name: str


class StoreItem(BaseModel):
    """Raw reminder row with only the requested fields populated.

    due_date is left as delivered by the store (datetime or string);
    normalizers.normalize_due_date turns it into a usable value.
    """

    id: Optional[str] = None
    name: Optional[str] = None
    completed: Optional[bool] = None
    due_date: Optional[Union[datetime, str]] = None
    priority: Optional[int] = None
    flagged: Optional[bool] = None
    body: Optional[str] = None


class ReminderCreatePayload(BaseModel):
    """Fields handed to the store when creating a reminder."""

    name: str
    due_date: Optional[datetime] = None
    body: Optional[str] = None
    flagged: Optional[bool] = None
    priority: Optional[int] = None


class ReminderCreate(BaseModel):
    """Request schema for creating a reminder through the REST API."""

    title: str = Field(..., min_length=1, description="Reminder title")
    due_date: Optional[str] = Field(
        None,
        description="Due date (ISO 8601)",
        examples=["2025-10-26T15:00:00Z", "2025-10-26"]
    )
    notes: Optional[str] = Field(None, description="Free-text notes")
    flagged: Optional[bool] = None
    priority: Optional[int] = Field(None, ge=0, le=9, description="0 (none) to 9")
    tags: Optional[List[str]] = Field(None, examples=[["work", "urgent"]])
    location: Optional[ReminderLocation] = None


class ReminderAttributesUpdate(BaseModel):
    """Partial attribute update.

    Only fields present in model_fields_set are applied:
    - tags=[] clears tags, omitted tags leave them untouched
    - location=None clears the location, omitted location leaves it untouched
    """

    flagged: Optional[bool] = None
    priority: Optional[int] = Field(None, ge=0, le=9)
    tags: Optional[List[str]] = None
    location: Optional[ReminderLocation] = None

    def touches(self, field: str) -> bool:
        return field in self.model_fields_set


LocationArgument = Union[ReminderLocation, None, Literal["unchanged"]]
"""MCP argument type for location updates: object sets, null clears,
'unchanged' (the default) keeps the stored value."""

