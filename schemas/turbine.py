from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from models.enums import Blade, BladeSide, DistanceConfidence
from models.measurement import Measurement, Point
from models.turbine_image import TurbineImage
from schemas.blade import (
    BladeCoverage,
    BladeInspectionStats,
    BladeMetrics,
    ImagePosition,
    MeasurementResult,
)


class RangeSummary(BaseModel):
    min: float
    max: float
    span: float


class GSDRangeSummary(BaseModel):
    min: float
    max: float
    average: float


class TurbineImagesSummary(BaseModel):
    total: int = 0
    by_blade: Dict[str, int] = Field(default_factory=lambda: {b.value: 0 for b in Blade})
    by_side: Dict[str, int] = Field(default_factory=lambda: {s.value: 0 for s in BladeSide})
    measurement_ready: int = 0
    altitude_range: Optional[RangeSummary] = None
    gsd_range: Optional[GSDRangeSummary] = None


class ImageQueryFilters(BaseModel):
    blade: Optional[Blade] = None
    side: Optional[BladeSide] = None
    sort_by: str = "altitude"
    sort_order: str = "asc"
    measurement_ready: bool = False


class ImageQueryCounts(BaseModel):
    total_filtered: int
    total_all: int
    measurement_ready_filtered: int


class TurbineImagesResponse(BaseModel):
    """Schema for image query response"""
    images: List[TurbineImage]
    summary: TurbineImagesSummary
    filters: ImageQueryFilters
    metadata: ImageQueryCounts


class MeasurementDataRequest(BaseModel):
    image_ids: List[str] = Field(..., min_length=1, max_length=500)


class ImageMeasurementData(BaseModel):
    id: str
    name: str
    blade: Blade
    side: BladeSide
    gsd_cm_per_pixel: float
    distance_to_blade: float
    altitude_above_ground: float
    distance_confidence: DistanceConfidence
    measurement_ready: bool
    width: int
    height: int
    capture_date: Optional[str] = None


class AltitudeCoverage(BaseModel):
    min: float
    max: float


class MeasurementDataSummary(BaseModel):
    total_selected: int
    measurement_ready: int
    average_gsd_cm_per_pixel: float
    altitude_coverage: Optional[AltitudeCoverage] = None
    blades_represented: List[Blade] = Field(default_factory=list)
    sides_represented: List[BladeSide] = Field(default_factory=list)
    confidence_breakdown: Dict[str, int] = Field(default_factory=dict)


class MeasurementDataResponse(BaseModel):
    measurements: List[ImageMeasurementData]
    summary: MeasurementDataSummary


class BladeModelResponse(BaseModel):
    """Blade model for one blade/side"""
    blade: Blade
    side: BladeSide
    metrics: BladeMetrics
    coverage: BladeCoverage
    positions: Dict[str, ImagePosition]
    stats: BladeInspectionStats


class MeasureRequest(BaseModel):
    start: Point
    end: Point
    label: Optional[str] = None
    with_blade_context: bool = True


class MeasureResponse(BaseModel):
    result: MeasurementResult
    measurement: Optional[Measurement] = None
