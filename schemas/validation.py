from typing import List
from pydantic import BaseModel, Field


class ValidationStatistics(BaseModel):
    total_images: int = 0
    valid_for_measurement: int = 0
    high_confidence_distance: int = 0
    medium_confidence_distance: int = 0
    low_confidence_distance: int = 0
    average_gsd: float = 0.0
    gsd_min: float = 0.0
    gsd_max: float = 0.0


class ValidationResult(BaseModel):
    is_valid: bool
    warnings: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    statistics: ValidationStatistics = Field(default_factory=ValidationStatistics)


class SingleImageValidation(BaseModel):
    can_measure: bool
    issues: List[str] = Field(default_factory=list)
    gsd_quality: str  # excellent | good | poor | unusable
