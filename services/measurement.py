"""
Measurement-to-absolute-position mapping.

A line drawn in image pixel space becomes a real-world length through the
image GSD. With a blade context, the line's vertical midpoint is also
placed on the blade as an absolute altitude and a percentage of blade
length.
"""

import logging
import math
import uuid
from typing import Dict, List, Optional

from core.config import settings
from core.exceptions import MeasurementTooShort, MeasurementUnavailable
from models.measurement import AbsolutePosition, Measurement, Point
from models.turbine_image import TurbineImage
from schemas.blade import BladeContext, MeasurementResult

logger = logging.getLogger(__name__)

REASON_TOO_SHORT = "too_short"
REASON_UNAVAILABLE = "unavailable"


def pixel_distance(start: Point, end: Point) -> float:
    return math.hypot(end.x - start.x, end.y - start.y)


def absolute_position(start: Point, end: Point, gsd_cm_per_pixel: float, context: BladeContext) -> AbsolutePosition:
    midpoint_y = (start.y + end.y) / 2
    relative_height_m = midpoint_y * gsd_cm_per_pixel / 100
    altitude = context.current_altitude + relative_height_m

    if context.blade_length > 0:
        percentage = (altitude - context.min_altitude) / context.blade_length * 100
    else:
        percentage = 0.0

    return AbsolutePosition(
        altitude=altitude,
        base_altitude=context.current_altitude,
        relative_height=relative_height_m,
        blade_percentage=max(0.0, min(100.0, percentage)),
    )


def measure(
    start: Point,
    end: Point,
    gsd_cm_per_pixel: Optional[float],
    blade_context: Optional[BladeContext] = None,
    min_pixels: Optional[float] = None,
) -> MeasurementResult:
    """
    Real-world length of a pixel line.

    Never raises for user input: an image without GSD yields
    ``reason="unavailable"`` and a line not longer than ``min_pixels``
    yields ``reason="too_short"``.
    """
    if gsd_cm_per_pixel is None or not gsd_cm_per_pixel > 0:
        return MeasurementResult(valid=False, reason=REASON_UNAVAILABLE)

    threshold = settings.min_measurement_pixels if min_pixels is None else min_pixels
    distance_px = pixel_distance(start, end)
    distance_cm = distance_px * gsd_cm_per_pixel

    position = None
    if blade_context is not None:
        position = absolute_position(start, end, gsd_cm_per_pixel, blade_context)

    valid = distance_px > threshold
    return MeasurementResult(
        distance_m=distance_cm / 100,
        distance_cm=distance_cm,
        pixel_distance=distance_px,
        absolute_position=position,
        valid=valid,
        reason=None if valid else REASON_TOO_SHORT,
    )


def create_measurement(
    image: TurbineImage,
    start: Point,
    end: Point,
    blade_context: Optional[BladeContext] = None,
    label: Optional[str] = None,
) -> Measurement:
    """Measurement record for ``image``, raising when none can be created"""
    gsd = image.gsd_cm_per_pixel
    result = measure(start, end, gsd, blade_context)
    if result.reason == REASON_UNAVAILABLE:
        raise MeasurementUnavailable(
            f"Image {image.id} has no valid GSD; measurement is not possible"
        )
    if not result.valid:
        raise MeasurementTooShort(f"Line of {result.pixel_distance:.1f}px is too short to measure")

    return Measurement(
        id=uuid.uuid4().hex,
        image_id=image.id,
        start=start,
        end=end,
        distance_cm=result.distance_cm,
        pixel_distance=result.pixel_distance,
        gsd_used=gsd,
        absolute_position=result.absolute_position,
        label=label,
    )


def format_distance(distance_m: float) -> str:
    if distance_m <= 0:
        return "0mm"
    mm = distance_m * 1000
    cm = distance_m * 100
    if mm < 1:
        return f"{mm:.2f}mm"
    if mm < 10:
        return f"{mm:.1f}mm"
    if cm < 100:
        return f"{cm:.1f}cm"
    return f"{distance_m:.2f}m"


class MeasurementBook:
    """Per-image measurement lists; entries go away only on delete or clear"""

    def __init__(self):
        self._by_image: Dict[str, List[Measurement]] = {}

    def add(self, measurement: Measurement) -> Measurement:
        self._by_image.setdefault(measurement.image_id, []).append(measurement)
        return measurement

    def record(
        self,
        image: TurbineImage,
        start: Point,
        end: Point,
        blade_context: Optional[BladeContext] = None,
        label: Optional[str] = None,
    ) -> Optional[Measurement]:
        """
        Create and store a measurement.

        Too-short lines are ignored and return None; MeasurementUnavailable
        propagates so the caller can tell the user why.
        """
        try:
            measurement = create_measurement(image, start, end, blade_context, label)
        except MeasurementTooShort as e:
            logger.debug(f"Ignoring measurement on {image.id}: {e}")
            return None
        return self.add(measurement)

    def for_image(self, image_id: str) -> List[Measurement]:
        return list(self._by_image.get(image_id, []))

    def delete(self, image_id: str, measurement_id: str) -> bool:
        measurements = self._by_image.get(image_id, [])
        for index, measurement in enumerate(measurements):
            if measurement.id == measurement_id:
                del measurements[index]
                return True
        return False

    def clear(self, image_id: Optional[str] = None) -> int:
        """Drop one image's measurements, or all of them; returns the count removed"""
        if image_id is not None:
            return len(self._by_image.pop(image_id, []))
        removed = sum(len(items) for items in self._by_image.values())
        self._by_image.clear()
        return removed
