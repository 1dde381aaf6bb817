"""Core data models for timeline event clustering.

This module defines the records that flow through the clustering engine:

- MediaAsset: one photo, video, audio clip or document with a capture time,
  an optional GPS fix and the people detected in it
- EventCluster: a chronologically ordered group of assets with exactly one
  key asset, optionally flagged as a photo burst
- TimelineEvent: the record the persistence layer stores for each cluster

Assets are immutable. The only field that changes after upstream extraction is
``is_key_asset``, and it changes by copy (see ``MediaAsset.with_key_flag``).

Example:
    >>> from datetime import datetime, timezone
    >>> asset = MediaAsset(
    ...     id="img_0001",
    ...     created_at=datetime(2023, 7, 4, 18, 30, tzinfo=timezone.utc),
    ...     location=GeoPoint(latitude=40.7829, longitude=-73.9654),
    ...     face_ids={"person_a", "person_b"},
    ... )
    >>> asset.has_location
    True
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eventcluster.core.geo import centroid, haversine_meters


# =============================================================================
# Enums
# =============================================================================


class AssetType(str, Enum):
    """Kinds of media an asset can hold.

    Attributes:
        PHOTO: Still image
        VIDEO: Video clip
        AUDIO: Audio recording
        DOCUMENT: Scanned or attached document
    """

    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


class ContextType(str, Enum):
    """Timeline context an asset collection belongs to.

    Each context has its own clustering preset (see
    ``ClusteringConfiguration.for_context``).
    """

    PERSON = "person"
    PET = "pet"
    PROJECT = "project"
    BUSINESS = "business"


# =============================================================================
# Supporting Models
# =============================================================================


class GeoPoint(BaseModel):
    """Geographic coordinates with optional altitude and accuracy.

    Attributes:
        latitude: Latitude in decimal degrees (-90 to 90)
        longitude: Longitude in decimal degrees (-180 to 180)
        altitude_meters: Optional altitude above sea level
        accuracy_meters: Optional accuracy radius
        place_name: Resolved place name from the geocoder, if any

    Example:
        >>> central_park = GeoPoint(latitude=40.7829, longitude=-73.9654)
        >>> central_park.distance_meters(GeoPoint(latitude=40.758, longitude=-73.9855))
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float
    altitude_meters: float | None = None
    accuracy_meters: float | None = None
    place_name: str | None = None

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float) -> float:
        """Validate latitude is within valid range (-90 to 90)."""
        if math.isnan(v) or v < -90 or v > 90:
            raise ValueError(f"Latitude must be between -90 and 90 degrees, got {v}")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float) -> float:
        """Validate longitude is within valid range (-180 to 180)."""
        if math.isnan(v) or v < -180 or v > 180:
            raise ValueError(f"Longitude must be between -180 and 180 degrees, got {v}")
        return v

    def distance_meters(self, other: GeoPoint) -> float:
        """Great-circle distance to another point in meters."""
        return haversine_meters(self, other)

    def distance_km(self, other: GeoPoint) -> float:
        """Great-circle distance to another point in kilometers."""
        return haversine_meters(self, other) / 1000.0

    def to_display_string(self) -> str:
        """Place name when known, otherwise rounded coordinates."""
        if self.place_name:
            return self.place_name
        return f"{self.latitude:.2f}, {self.longitude:.2f}"


# =============================================================================
# Media Asset
# =============================================================================


class MediaAsset(BaseModel):
    """A single media file on the timeline.

    Produced upstream by EXIF extraction; the clustering core only reads it.
    Naive ``created_at`` values are interpreted as UTC so that assets from
    different sources always compare.

    Attributes:
        id: Unique identifier
        created_at: Capture time (required, orders assets)
        type: Kind of media
        location: GPS fix, if the file had one
        is_key_asset: True for the one asset that represents its cluster
        face_ids: Opaque identifiers of people detected in the asset
        event_id: Timeline event the asset was assigned to, if any
        local_path: Path on device, if known
        caption: User caption
        exif_complete: Upstream extraction found full EXIF (time, camera, GPS)
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    created_at: datetime
    type: AssetType = AssetType.PHOTO
    location: GeoPoint | None = None
    is_key_asset: bool = False
    face_ids: frozenset[str] = Field(default_factory=frozenset)
    event_id: str | None = None
    local_path: str | None = None
    caption: str | None = None
    exif_complete: bool = False

    @field_validator("created_at")
    @classmethod
    def ensure_timezone_aware(cls, v: datetime) -> datetime:
        """Assume UTC for naive datetimes."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("caption", mode="before")
    @classmethod
    def normalize_caption(cls, v: str | None) -> str | None:
        """Strip whitespace and convert empty strings to None."""
        if v is None:
            return None
        stripped = v.strip()
        return stripped if stripped else None

    @property
    def has_location(self) -> bool:
        """True if the asset carries a GPS fix."""
        return self.location is not None

    def with_key_flag(self, is_key: bool) -> MediaAsset:
        """Return a copy with ``is_key_asset`` set."""
        if self.is_key_asset == is_key:
            return self
        return self.model_copy(update={"is_key_asset": is_key})

    def with_event_id(self, event_id: str) -> MediaAsset:
        """Return a copy assigned to a timeline event."""
        return self.model_copy(update={"event_id": event_id})


# =============================================================================
# Clusters and Events
# =============================================================================


class EventCluster(BaseModel):
    """A group of assets that will become one timeline entry.

    Attributes:
        assets: Non-empty, chronologically sorted assets
        is_burst: True for rapid-fire photo sequences
        key_asset_id: Id of the single asset flagged ``is_key_asset``
    """

    model_config = ConfigDict(frozen=True)

    assets: list[MediaAsset] = Field(min_length=1)
    is_burst: bool = False
    key_asset_id: str

    @model_validator(mode="after")
    def validate_key_asset(self) -> Self:
        """Exactly one asset is the key asset and it matches key_asset_id."""
        flagged = [a.id for a in self.assets if a.is_key_asset]
        if len(flagged) != 1:
            raise ValueError(f"Cluster must have exactly one key asset, found {len(flagged)}")
        if flagged[0] != self.key_asset_id:
            raise ValueError(
                f"key_asset_id {self.key_asset_id!r} does not match flagged asset {flagged[0]!r}"
            )
        return self

    @property
    def key_asset(self) -> MediaAsset:
        """The representative asset."""
        return next(a for a in self.assets if a.is_key_asset)

    @property
    def start_time(self) -> datetime:
        return self.assets[0].created_at

    @property
    def end_time(self) -> datetime:
        return self.assets[-1].created_at

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration_minutes(self) -> int:
        """Whole minutes between first and last asset."""
        return int(self.duration.total_seconds() // 60)

    @property
    def asset_count(self) -> int:
        return len(self.assets)

    @property
    def asset_ids(self) -> list[str]:
        return [a.id for a in self.assets]

    @property
    def center_location(self) -> GeoPoint | None:
        """Centroid of the located assets, or None if none have GPS."""
        return centroid([a.location for a in self.assets if a.location is not None])


class TimelineEvent(BaseModel):
    """Stored timeline entry materialized from an EventCluster.

    Attributes:
        id: Event identifier
        context_id: Timeline context the event belongs to
        owner_id: Owning user
        timestamp: Start of the event
        event_type: "photo_burst", "photo_collection" or "photo"
        title: Auto-generated title, None for single photos
        description: Duration / location summary
        location: Cluster centre
        assets: Assets with event_id and key flags applied
    """

    id: str
    context_id: str
    owner_id: str
    timestamp: datetime
    event_type: str
    title: str | None = None
    description: str | None = None
    location: GeoPoint | None = None
    assets: list[MediaAsset] = Field(default_factory=list)

    @property
    def key_asset(self) -> MediaAsset | None:
        return next((a for a in self.assets if a.is_key_asset), None)
