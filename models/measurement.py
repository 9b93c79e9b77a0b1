from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class Point(BaseModel):
    """Pixel coordinate in image space"""
    x: float
    y: float


class AbsolutePosition(BaseModel):
    """Where a measurement sits along the blade"""
    altitude: float  # meters
    base_altitude: float  # altitude of the image the line was drawn on
    relative_height: float  # meters above the image's altitude
    blade_percentage: float = Field(..., ge=0, le=100)


class Measurement(BaseModel):
    """A user-drawn line on one image, converted to real-world units"""
    id: str
    image_id: str
    start: Point
    end: Point
    distance_cm: float
    pixel_distance: float
    gsd_used: float  # cm/pixel
    absolute_position: Optional[AbsolutePosition] = None
    label: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
