"""
Fallback distance estimation from sibling images.

When an image carries no usable distance, the median distance of already
processed images stands in for it. Same blade and side are preferred;
with fewer than three such samples the whole population is used.
"""

import logging
from typing import Iterable, List, Optional

import numpy as np

from models.enums import Blade, BladeSide, DistanceConfidence
from models.turbine_image import TurbineImage
from schemas.blade import DistanceStatistics

logger = logging.getLogger(__name__)

MIN_SAME_BLADE_SAMPLES = 3
MIN_SAMPLES_FOR_HIGH_CONFIDENCE = 5
MAX_RELATIVE_STD_FOR_HIGH_CONFIDENCE = 0.1


def _is_trusted_sample(image: TurbineImage) -> bool:
    gsd = image.gsd
    return (
        gsd is not None
        and gsd.distance_to_blade_m > 0
        and gsd.distance_confidence != DistanceConfidence.LOW
    )


def estimate_distance(
    existing_images: Iterable[TurbineImage],
    blade: Optional[Blade] = None,
    side: Optional[BladeSide] = None,
) -> DistanceStatistics:
    """
    Mean, median and confidence of trusted sibling distances.

    The median is the element at index ``n // 2`` of the sorted samples;
    even counts are not averaged.
    """
    trusted = [img for img in existing_images if _is_trusted_sample(img)]
    same_blade = [img for img in trusted if img.blade == blade and img.side == side]
    relevant = same_blade if len(same_blade) >= MIN_SAME_BLADE_SAMPLES else trusted

    distances: List[float] = [img.gsd.distance_to_blade_m for img in relevant]
    if not distances:
        return DistanceStatistics()

    values = np.asarray(distances, dtype=float)
    sorted_values = np.sort(values)
    mean_distance = float(values.mean())
    median_distance = float(sorted_values[len(sorted_values) // 2])

    confidence = DistanceConfidence.MEDIUM
    if len(values) >= MIN_SAMPLES_FOR_HIGH_CONFIDENCE:
        std_dev = float(values.std())  # population std
        if std_dev < mean_distance * MAX_RELATIVE_STD_FOR_HIGH_CONFIDENCE:
            confidence = DistanceConfidence.HIGH
    elif len(values) < MIN_SAME_BLADE_SAMPLES:
        confidence = DistanceConfidence.LOW

    logger.debug(
        f"Distance statistics for {blade}-{side}: {len(values)} samples "
        f"({'same blade/side' if relevant is same_blade else 'all images'}), "
        f"median {median_distance:.2f}m, confidence {confidence.value}"
    )

    return DistanceStatistics(
        mean_distance=mean_distance,
        median_distance=median_distance,
        valid_distances=[float(v) for v in sorted_values],
        confidence=confidence,
    )
