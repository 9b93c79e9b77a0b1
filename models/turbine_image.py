"""
Persisted turbine image records.

A GSDRecord is created once at ingestion and never mutated; correcting it
means re-ingesting the image.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from .enums import Blade, BladeSide, DistanceConfidence


class CameraOptics(BaseModel):
    """Optics needed for GSD: focal length and sensor size in millimeters"""
    model_config = ConfigDict(frozen=True)

    focal_length_mm: float = Field(..., gt=0)
    sensor_width_mm: float = Field(..., gt=0)
    sensor_height_mm: float = Field(..., gt=0)


class CameraSpecs(CameraOptics):
    """Camera optics plus the make/model they were looked up from"""
    make: str = "DJI"
    model: str = "M3E"


class GSDRecord(BaseModel):
    """Per-image ground sample distance, fixed at ingestion"""
    model_config = ConfigDict(frozen=True)

    gsd_width_m: float  # meters per pixel
    gsd_height_m: float  # meters per pixel
    gsd_cm_per_pixel: float
    flight_height_m: float  # meters above ground, the blade's spatial axis
    distance_to_blade_m: float
    altitude_source: str
    distance_source: str
    distance_confidence: DistanceConfidence

    @property
    def is_measurable(self) -> bool:
        return self.gsd_cm_per_pixel > 0

    @property
    def uses_focus_distance(self) -> bool:
        return "focus" in self.distance_source.lower()


class TurbineImage(BaseModel):
    """A drone photograph of one blade face"""
    id: str
    name: str = ""
    orig_img_src: str = ""
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    blade: Blade
    side: BladeSide
    camera: Optional[CameraSpecs] = None
    gsd: Optional[GSDRecord] = None
    date: Optional[str] = None

    @property
    def flight_height(self) -> float:
        """Altitude or 0 when the image has no GSD record"""
        return self.gsd.flight_height_m if self.gsd is not None else 0.0

    @property
    def gsd_cm_per_pixel(self) -> float:
        return self.gsd.gsd_cm_per_pixel if self.gsd is not None else 0.0
