"""Clustering thresholds.

``ClusteringConfiguration`` is an immutable value object validated at
construction time. An invalid combination (for example ``min_burst_size``
greater than ``max_burst_size``) raises ``pydantic.ValidationError`` and is
never clamped into range.

Example:
    >>> config = ClusteringConfiguration(temporal_threshold_minutes=90)
    >>> pet_config = ClusteringConfiguration.for_context(ContextType.PET)
    >>> no_spatial = ClusteringConfiguration(spatial_threshold_meters=math.inf)
"""

from __future__ import annotations

import math
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from eventcluster.core.models import ContextType


class ClusteringConfiguration(BaseModel):
    """Thresholds for temporal, spatial and burst grouping.

    Attributes:
        temporal_threshold_minutes: Maximum gap between consecutive assets, and
            maximum span of an ordinary cluster, in minutes.
        spatial_threshold_meters: Maximum distance between consecutive located
            assets. ``math.inf`` disables spatial gating.
        burst_threshold_seconds: Maximum gap between photos of a burst.
        min_burst_size: Smallest run that counts as a burst (at least 2).
        max_burst_size: Largest burst; longer runs are split.
    """

    model_config = ConfigDict(frozen=True)

    temporal_threshold_minutes: int = Field(default=60, description="Max gap/span in minutes.")
    spatial_threshold_meters: float = Field(default=1000.0, description="Max hop distance.")
    burst_threshold_seconds: int = Field(default=30, description="Max gap inside a burst.")
    min_burst_size: int = Field(default=3, description="Smallest burst.")
    max_burst_size: int = Field(default=50, description="Largest burst before splitting.")

    @field_validator("temporal_threshold_minutes", "burst_threshold_seconds")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Time thresholds must be strictly positive."""
        if v <= 0:
            raise ValueError(f"Threshold must be positive, got {v}")
        return v

    @field_validator("spatial_threshold_meters")
    @classmethod
    def validate_spatial(cls, v: float) -> float:
        """Spatial threshold must be positive or infinite."""
        if math.isnan(v) or v <= 0:
            raise ValueError(f"Spatial threshold must be positive or infinite, got {v}")
        return v

    @field_validator("min_burst_size")
    @classmethod
    def validate_min_burst(cls, v: int) -> int:
        """A single photo is never a burst."""
        if v < 2:
            raise ValueError(f"min_burst_size must be at least 2, got {v}")
        return v

    @model_validator(mode="after")
    def validate_burst_bounds(self) -> Self:
        """min_burst_size must not exceed max_burst_size."""
        if self.min_burst_size > self.max_burst_size:
            raise ValueError(
                f"min_burst_size ({self.min_burst_size}) cannot exceed "
                f"max_burst_size ({self.max_burst_size})"
            )
        return self

    @property
    def spatial_gating_enabled(self) -> bool:
        return not math.isinf(self.spatial_threshold_meters)

    @property
    def temporal_threshold_seconds(self) -> int:
        return self.temporal_threshold_minutes * 60

    @classmethod
    def for_context(cls, context_type: ContextType) -> ClusteringConfiguration:
        """Preset tuned for a timeline context.

        Pets move in short bursts close to home, project sites are small but
        work spans hours, and business events run all day.

        Args:
            context_type: The timeline context

        Returns:
            Preset configuration
        """
        presets: dict[ContextType, dict[str, float]] = {
            ContextType.PERSON: {
                "temporal_threshold_minutes": 120,
                "spatial_threshold_meters": 500,
                "burst_threshold_seconds": 60,
            },
            ContextType.PET: {
                "temporal_threshold_minutes": 30,
                "spatial_threshold_meters": 100,
                "burst_threshold_seconds": 15,
            },
            ContextType.PROJECT: {
                "temporal_threshold_minutes": 240,
                "spatial_threshold_meters": 50,
                "burst_threshold_seconds": 30,
            },
            ContextType.BUSINESS: {
                "temporal_threshold_minutes": 480,
                "spatial_threshold_meters": 1000,
                "burst_threshold_seconds": 120,
            },
        }
        return cls(**presets[ContextType(context_type)])
