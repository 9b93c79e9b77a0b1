"""
Derived, never-persisted views computed by the core services.

Everything here is a pure function of its inputs and is recomputed
whenever the image set changes.
"""

from typing import Any, List, Optional
from pydantic import BaseModel, Field

from models.enums import DistanceConfidence
from models.measurement import AbsolutePosition


class DistanceResolution(BaseModel):
    """Best camera-to-blade distance found in a metadata bag"""
    distance_m: float
    source: str
    confidence: DistanceConfidence
    raw_value: Optional[Any] = None

    @classmethod
    def not_found(cls) -> "DistanceResolution":
        return cls(distance_m=0.0, source="not_found", confidence=DistanceConfidence.LOW)

    @property
    def is_resolved(self) -> bool:
        return self.source != "not_found" and self.distance_m > 0


class GSDComputation(BaseModel):
    """Raw GSD output of the optics formula"""
    gsd_width_m: float
    gsd_height_m: float
    gsd_avg_m: float
    gsd_cm_per_pixel: float


class DistanceStatistics(BaseModel):
    """Sibling-image distance statistics used for interpolation"""
    mean_distance: float = 0.0
    median_distance: float = 0.0
    valid_distances: List[float] = Field(default_factory=list)
    confidence: DistanceConfidence = DistanceConfidence.LOW

    @property
    def sample_count(self) -> int:
        return len(self.valid_distances)


class BladeMetrics(BaseModel):
    """1-D spatial model of a blade built from image altitudes"""
    length_meters: float = 0.0
    length_pixels: float = 0.0
    min_altitude: float = 0.0
    max_altitude: float = 0.0
    altitude_range: float = 0.0
    total_images: int = 0
    average_spacing: float = 0.0
    pixels_per_meter: float = 3.0


class ImagePosition(BaseModel):
    """Position of one image along the blade"""
    altitude_from_base: float
    percentage_from_base: float
    position_pixels: float
    relative_position: float = Field(..., ge=0, le=1)
    image_index: int = 0


class CoverageGap(BaseModel):
    start: float
    end: float
    size: float


class DensityBin(BaseModel):
    altitude: float  # bin center
    image_count: int


class BladeCoverage(BaseModel):
    total_coverage: float = 0.0
    gaps: List[CoverageGap] = Field(default_factory=list)
    density_map: List[DensityBin] = Field(default_factory=list)
    quality_score: float = 0.0


class BladeValidation(BaseModel):
    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    quality_score: float = 0.0


class ValueStats(BaseModel):
    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0
    median: float = 0.0
    count: int = 0


class AltitudeStats(BaseModel):
    min: float = 0.0
    max: float = 0.0
    range: float = 0.0
    count: int = 0


class BladeInspectionStats(BaseModel):
    coverage: BladeCoverage
    metrics: BladeMetrics
    validation: BladeValidation
    gsd_stats: ValueStats
    altitude_stats: AltitudeStats


class BladeContext(BaseModel):
    """What the measurement mapper needs to place a line on the blade"""
    current_altitude: float
    min_altitude: float
    max_altitude: float = 0.0
    blade_length: float
    current_image_position: Optional[ImagePosition] = None


class RulerIntervals(BaseModel):
    ruler_interval_cm: float
    major_interval_cm: float
    minor_interval_cm: float
    ruler_interval_px: float
    major_interval_px: float
    minor_interval_px: float
    effective_gsd_cm_per_pixel: float


class MeasurementResult(BaseModel):
    """
    Outcome of converting a pixel line into real-world units.

    ``valid`` is False for lines that are too short or images without GSD;
    ``reason`` tells the two apart.
    """
    distance_m: float = 0.0
    distance_cm: float = 0.0
    pixel_distance: float = 0.0
    absolute_position: Optional[AbsolutePosition] = None
    valid: bool = False
    reason: Optional[str] = None  # "too_short" | "unavailable"
