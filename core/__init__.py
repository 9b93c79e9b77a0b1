from .config import settings
from .exceptions import (
    BladeGSDError,
    UnresolvedDistance,
    FocusDistanceMisuse,
    ImplausibleDistance,
    ImplausibleGSD,
    InvalidDistance,
    InvalidImageDimensions,
    MeasurementTooShort,
    MeasurementUnavailable,
    MetadataExtractionError,
)

__all__ = [
    "settings",
    "BladeGSDError",
    "UnresolvedDistance",
    "FocusDistanceMisuse",
    "ImplausibleDistance",
    "ImplausibleGSD",
    "InvalidDistance",
    "InvalidImageDimensions",
    "MeasurementTooShort",
    "MeasurementUnavailable",
    "MetadataExtractionError",
]
