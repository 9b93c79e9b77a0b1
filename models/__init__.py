from .enums import Blade, BladeSide, DistanceConfidence
from .turbine_image import CameraOptics, CameraSpecs, GSDRecord, TurbineImage
from .measurement import Point, AbsolutePosition, Measurement

__all__ = [
    "Blade", "BladeSide", "DistanceConfidence",
    "CameraOptics", "CameraSpecs", "GSDRecord", "TurbineImage",
    "Point", "AbsolutePosition", "Measurement",
]
