"""
Camera optics lookup and altitude extraction from metadata.
"""

import logging
from typing import Optional, Tuple

from models.turbine_image import CameraSpecs
from services.metadata import MetadataBag, parse_number

logger = logging.getLogger(__name__)

# DJI Mavic 3 Enterprise wide camera
DEFAULT_FOCAL_LENGTH_MM = 12.29
DEFAULT_SENSOR_WIDTH_MM = 17.3
DEFAULT_SENSOR_HEIGHT_MM = 13.0
DEFAULT_MAKE = "DJI"
DEFAULT_MODEL = "M3E"

# Checked in order; first rule whose model keyword matches wins
DJI_SENSOR_TABLE = [
    (("M3E", "MAVIC 3 ENTERPRISE"), (17.3, 13.0)),
    (("M3", "MAVIC 3"), (17.3, 13.0)),
    (("MINI", "M2"), (6.17, 4.55)),
    (("AIR",), (6.4, 4.8)),
]

MAKE_TAGS = ("EXIF:Make", "Make")
MODEL_TAGS = ("EXIF:Model", "Model")
FOCAL_LENGTH_TAGS = ("EXIF:FocalLength", "FocalLength", "Camera:FocalLength")
ALTITUDE_TAGS = ("XMP:RelativeAltitude", "RelativeAltitude", "GPS:GPSAltitude", "GPSAltitude")
DATE_TAGS = ("EXIF:DateTime", "DateTime", "EXIF:DateTimeOriginal", "DateTimeOriginal")


def lookup_sensor_size(make: str, model: str) -> Tuple[float, float]:
    """Sensor width/height in mm by case-insensitive substring match"""
    make_upper = (make or "").upper()
    model_upper = (model or "").upper()

    if "DJI" in make_upper:
        for keywords, sensor in DJI_SENSOR_TABLE:
            if any(keyword in model_upper for keyword in keywords):
                return sensor

    return DEFAULT_SENSOR_WIDTH_MM, DEFAULT_SENSOR_HEIGHT_MM


def lookup_camera_optics(make: str, model: str, focal_length_mm: Optional[float] = None) -> CameraSpecs:
    """
    Camera optics for a make/model pair.

    Unknown cameras get the M3E default rather than an error. An EXIF focal
    length overrides the default focal length.
    """
    sensor_width, sensor_height = lookup_sensor_size(make, model)
    if focal_length_mm is None or focal_length_mm <= 0:
        focal_length_mm = DEFAULT_FOCAL_LENGTH_MM
    return CameraSpecs(
        make=make,
        model=model,
        focal_length_mm=focal_length_mm,
        sensor_width_mm=sensor_width,
        sensor_height_mm=sensor_height,
    )


def camera_from_metadata(bag: MetadataBag) -> CameraSpecs:
    make_entry = bag.first(MAKE_TAGS)
    model_entry = bag.first(MODEL_TAGS)
    make = str(make_entry[1]).strip() if make_entry else DEFAULT_MAKE
    model = str(model_entry[1]).strip() if model_entry else DEFAULT_MODEL

    focal_length = None
    focal_entry = bag.first(FOCAL_LENGTH_TAGS)
    if focal_entry is not None:
        focal_length = parse_number(focal_entry[1])

    return lookup_camera_optics(make, model, focal_length)


def altitude_from_metadata(bag: MetadataBag) -> Tuple[float, str]:
    """Flight height above ground in meters and how it was determined"""
    entry = bag.first(ALTITUDE_TAGS)
    altitude = parse_number(entry[1]) if entry else None
    if altitude is None or altitude <= 0:
        return 0.0, "estimated"
    return altitude, "relative_altitude"


def capture_date_from_metadata(bag: MetadataBag) -> Optional[str]:
    entry = bag.first(DATE_TAGS)
    return str(entry[1]) if entry else None
