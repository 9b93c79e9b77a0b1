"""
Error taxonomy for distance resolution, GSD computation and measurement.

Ingestion-time errors abort a single image and are collected per batch.
Measurement-time conditions are normally reported through a tagged result;
the exception classes exist so callers that prefer raising can do so.
"""

from typing import Optional


class BladeGSDError(Exception):
    """Base class for all blade GSD errors"""
    pass


class MetadataExtractionError(BladeGSDError):
    """The external metadata extractor failed or returned nothing usable"""
    pass


class UnresolvedDistance(BladeGSDError):
    """No metadata distance and no interpolation sample available"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "No distance to blade found in EXIF metadata and no existing images available for interpolation. "
            "Please add distance information to the image metadata or provide manual distance during upload."
        )


class FocusDistanceMisuse(BladeGSDError):
    """A distance was sourced from a focus-distance field"""

    def __init__(self, source: str):
        self.source = source
        super().__init__(
            f"Using focus distance instead of blade distance (Source: {source}). "
            "Focus distance is unrelated to subject distance; the image must be re-processed."
        )


class ImplausibleDistance(BladeGSDError):
    """Distance to blade outside the blade inspection range"""

    def __init__(self, distance: float, minimum: float, maximum: float):
        self.distance = distance
        super().__init__(
            f"Distance to blade ({distance}m) is outside reasonable range ({minimum}m - {maximum}m). "
            "Please check the distance data."
        )


class ImplausibleGSD(BladeGSDError):
    """Computed GSD outside the plausible cm/pixel range"""

    def __init__(self, gsd_cm_per_pixel: float):
        self.gsd_cm_per_pixel = gsd_cm_per_pixel
        super().__init__(
            f"Calculated GSD ({gsd_cm_per_pixel:.4f} cm/pixel) is unrealistic. "
            "Please check camera and distance data."
        )


class InvalidDistance(BladeGSDError, ValueError):
    """GSD requested for a non-positive distance"""

    def __init__(self, distance: float):
        self.distance = distance
        super().__init__(f"Invalid distance to blade: must be greater than 0 (got {distance})")


class InvalidImageDimensions(BladeGSDError, ValueError):
    """GSD requested for an image with non-positive pixel dimensions"""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        super().__init__(f"Image dimensions must be positive, got {width}x{height}")


class MeasurementTooShort(BladeGSDError):
    """Line shorter than the minimum pixel threshold"""
    pass


class MeasurementUnavailable(BladeGSDError):
    """Image has no valid GSD, so nothing can be measured on it"""
    pass
