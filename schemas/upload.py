from typing import List, Optional
from pydantic import BaseModel, Field

from models.enums import Blade, BladeSide
from models.turbine_image import CameraSpecs, GSDRecord, TurbineImage


class UploadMetadata(BaseModel):
    """Per-file form metadata sent alongside an upload"""
    blade: Optional[Blade] = None
    side: Optional[BladeSide] = None
    folder_name: Optional[str] = Field(None, description="Source folder, parsed for blade/side when not given")
    manual_distance: Optional[float] = Field(None, description="Manual distance to blade override in meters")


class GSDOutcome(BaseModel):
    """Result of resolving one image's GSD at ingestion"""
    gsd: GSDRecord
    camera: CameraSpecs
    interpolation_note: Optional[str] = None


class BatchResult(BaseModel):
    images: List[TurbineImage] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    interpolation_log: List[str] = Field(default_factory=list)


class UploadResponse(BaseModel):
    """Schema for upload response"""
    success: bool
    processed: int
    total_images: int
    message: str
    errors: List[str] = Field(default_factory=list)
    interpolation_log: List[str] = Field(default_factory=list)
    interpolated_count: int = 0
