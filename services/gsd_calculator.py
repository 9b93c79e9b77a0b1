"""
Ground sample distance from camera optics and distance to the blade.

    gsd_m_per_px = (sensor_mm * distance_m) / (focal_length_mm * image_px)

computed separately for width and height, averaged, then scaled to cm.
"""

import logging

from core.exceptions import ImplausibleDistance, ImplausibleGSD, InvalidDistance, InvalidImageDimensions
from models.enums import DistanceConfidence
from models.turbine_image import CameraOptics, GSDRecord
from schemas.blade import GSDComputation

logger = logging.getLogger(__name__)

# Plausible cm/pixel, both exclusive
MIN_GSD_CM_PER_PIXEL = 0.001
MAX_GSD_CM_PER_PIXEL = 50.0

# Blade inspection distance range in meters, both inclusive
MIN_BLADE_DISTANCE_M = 0.5
MAX_BLADE_DISTANCE_M = 100.0


def compute_gsd(optics: CameraOptics, distance_m: float, image_width_px: int, image_height_px: int) -> GSDComputation:
    """Meters-per-pixel for width, height and their average, plus cm/pixel"""
    if distance_m is None or not distance_m > 0:
        raise InvalidDistance(distance_m)
    if image_width_px <= 0 or image_height_px <= 0:
        raise InvalidImageDimensions(image_width_px, image_height_px)

    gsd_width_m = (optics.sensor_width_mm * distance_m) / (optics.focal_length_mm * image_width_px)
    gsd_height_m = (optics.sensor_height_mm * distance_m) / (optics.focal_length_mm * image_height_px)
    gsd_avg_m = (gsd_width_m + gsd_height_m) / 2

    return GSDComputation(
        gsd_width_m=gsd_width_m,
        gsd_height_m=gsd_height_m,
        gsd_avg_m=gsd_avg_m,
        gsd_cm_per_pixel=gsd_avg_m * 100,
    )


def is_plausible_gsd(gsd_cm_per_pixel: float) -> bool:
    return MIN_GSD_CM_PER_PIXEL < gsd_cm_per_pixel < MAX_GSD_CM_PER_PIXEL


def validate_gsd(gsd_cm_per_pixel: float) -> None:
    if not is_plausible_gsd(gsd_cm_per_pixel):
        raise ImplausibleGSD(gsd_cm_per_pixel)


def is_plausible_blade_distance(distance_m: float) -> bool:
    return MIN_BLADE_DISTANCE_M <= distance_m <= MAX_BLADE_DISTANCE_M


def validate_blade_distance(distance_m: float) -> None:
    if not is_plausible_blade_distance(distance_m):
        raise ImplausibleDistance(distance_m, MIN_BLADE_DISTANCE_M, MAX_BLADE_DISTANCE_M)


def build_gsd_record(
    optics: CameraOptics,
    distance_m: float,
    image_width_px: int,
    image_height_px: int,
    flight_height_m: float,
    altitude_source: str,
    distance_source: str,
    distance_confidence: DistanceConfidence,
) -> GSDRecord:
    """Compute GSD, reject implausible values and freeze the result"""
    computation = compute_gsd(optics, distance_m, image_width_px, image_height_px)
    validate_gsd(computation.gsd_cm_per_pixel)

    logger.debug(
        f"GSD {computation.gsd_cm_per_pixel:.4f} cm/px at {distance_m}m "
        f"(focal {optics.focal_length_mm}mm, sensor {optics.sensor_width_mm}x{optics.sensor_height_mm}mm)"
    )

    return GSDRecord(
        gsd_width_m=computation.gsd_width_m,
        gsd_height_m=computation.gsd_height_m,
        gsd_cm_per_pixel=computation.gsd_cm_per_pixel,
        flight_height_m=flight_height_m,
        distance_to_blade_m=distance_m,
        altitude_source=altitude_source,
        distance_source=distance_source,
        distance_confidence=distance_confidence,
    )
