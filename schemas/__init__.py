from .blade import (
    DistanceResolution,
    GSDComputation,
    DistanceStatistics,
    BladeMetrics,
    ImagePosition,
    CoverageGap,
    DensityBin,
    BladeCoverage,
    BladeValidation,
    BladeContext,
    RulerIntervals,
    MeasurementResult,
)
from .upload import UploadMetadata, BatchResult, UploadResponse
from .validation import ValidationStatistics, ValidationResult, SingleImageValidation

__all__ = [
    # Blade schemas
    "DistanceResolution",
    "GSDComputation",
    "DistanceStatistics",
    "BladeMetrics",
    "ImagePosition",
    "CoverageGap",
    "DensityBin",
    "BladeCoverage",
    "BladeValidation",
    "BladeContext",
    "RulerIntervals",
    "MeasurementResult",
    # Upload schemas
    "UploadMetadata",
    "BatchResult",
    "UploadResponse",
    # Validation schemas
    "ValidationStatistics",
    "ValidationResult",
    "SingleImageValidation",
]
