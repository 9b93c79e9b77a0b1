"""
Blade geometry model.

The drone flies up the blade, so each image's flight height is its
position on a 1-D blade axis. From the altitudes of a blade/side image
set this module derives the blade length, per-image positions, coverage
gaps, a density histogram and a 0-100 coverage quality score.
"""

import logging
from typing import List, NamedTuple, Optional, Sequence

import numpy as np

from models.enums import Blade, BladeSide
from models.turbine_image import TurbineImage
from schemas.blade import (
    AltitudeStats,
    BladeContext,
    BladeCoverage,
    BladeInspectionStats,
    BladeMetrics,
    BladeValidation,
    CoverageGap,
    DensityBin,
    ImagePosition,
    ValueStats,
)

logger = logging.getLogger(__name__)

DEFAULT_PIXELS_PER_METER = 3.0
MIN_LENGTH_PIXELS = 200.0
MAX_LENGTH_PIXELS = 500.0
EDGE_MARGIN_PIXELS = 4.0

GAP_SPACING_FACTOR = 2.5
MIN_DENSITY_BINS = 5
MAX_DENSITY_BINS = 20
GAP_PENALTY_WEIGHT = 50.0
LOW_DENSITY_IMAGES_PER_METER = 0.1
LOW_DENSITY_PENALTY = 30.0
HIGH_COUNT_THRESHOLD = 20
HIGH_COUNT_BONUS = 10.0


class ClosestImage(NamedTuple):
    image: TurbineImage
    index: int
    distance: float


def filter_images(
    images: Sequence[TurbineImage],
    blade: Optional[Blade] = None,
    side: Optional[BladeSide] = None,
) -> List[TurbineImage]:
    """Images of one blade/side, ordered bottom to top"""
    selected = [
        img for img in images
        if (blade is None or img.blade == blade) and (side is None or img.side == side)
    ]
    return sorted(selected, key=lambda img: img.flight_height)


def sorted_altitudes(images: Sequence[TurbineImage]) -> List[float]:
    """Positive flight heights in ascending order"""
    return sorted(img.flight_height for img in images if img.flight_height > 0)


def compute_blade_metrics(
    images: Sequence[TurbineImage],
    pixels_per_meter: float = DEFAULT_PIXELS_PER_METER,
) -> BladeMetrics:
    altitudes = sorted_altitudes(images)
    if not altitudes:
        return BladeMetrics(total_images=len(images), pixels_per_meter=pixels_per_meter)

    min_altitude = altitudes[0]
    max_altitude = altitudes[-1]
    altitude_range = max_altitude - min_altitude

    # Display scale only, not a physical unit
    length_pixels = max(MIN_LENGTH_PIXELS, min(MAX_LENGTH_PIXELS, altitude_range * pixels_per_meter))
    average_spacing = altitude_range / (len(altitudes) - 1) if len(altitudes) > 1 else 0.0

    return BladeMetrics(
        length_meters=altitude_range,
        length_pixels=length_pixels,
        min_altitude=min_altitude,
        max_altitude=max_altitude,
        altitude_range=altitude_range,
        total_images=len(images),
        average_spacing=average_spacing,
        pixels_per_meter=pixels_per_meter,
    )


def compute_image_position(image: TurbineImage, metrics: BladeMetrics, image_index: int = 0) -> ImagePosition:
    """
    Where ``image`` sits on the blade drawn bottom-to-top.

    Higher altitude gives a smaller pixel offset from the visual top; the
    offset keeps EDGE_MARGIN_PIXELS away from both ends.
    """
    current_altitude = image.flight_height or metrics.min_altitude
    altitude_from_base = current_altitude - metrics.min_altitude

    if metrics.altitude_range > 0:
        relative_position = altitude_from_base / metrics.altitude_range
    else:
        relative_position = 0.0
    relative_position = min(1.0, max(0.0, relative_position))

    position_pixels = metrics.length_pixels - relative_position * metrics.length_pixels
    position_pixels = max(EDGE_MARGIN_PIXELS, min(metrics.length_pixels - EDGE_MARGIN_PIXELS, position_pixels))

    return ImagePosition(
        altitude_from_base=altitude_from_base,
        percentage_from_base=relative_position * 100,
        position_pixels=position_pixels,
        relative_position=relative_position,
        image_index=image_index,
    )


def compute_image_positions(images: Sequence[TurbineImage], metrics: BladeMetrics) -> List[ImagePosition]:
    return [compute_image_position(img, metrics, index) for index, img in enumerate(images)]


def compute_blade_coverage(images: Sequence[TurbineImage]) -> BladeCoverage:
    altitudes = sorted_altitudes(images)
    if not altitudes:
        return BladeCoverage()

    values = np.asarray(altitudes, dtype=float)
    min_altitude = float(values[0])
    total_range = float(values[-1]) - min_altitude
    total_coverage = 100.0 if total_range > 0 else 0.0

    gaps: List[CoverageGap] = []
    if len(values) > 1:
        threshold = (total_range / (len(values) - 1)) * GAP_SPACING_FACTOR
        for lower, upper in zip(values[:-1], values[1:]):
            delta = float(upper - lower)
            if delta > threshold:
                gaps.append(CoverageGap(start=float(lower), end=float(upper), size=delta))

    bin_count = min(MAX_DENSITY_BINS, max(MIN_DENSITY_BINS, len(values) // 2))
    bin_size = total_range / bin_count
    density_map: List[DensityBin] = []
    for i in range(bin_count):
        bin_start = min_altitude + i * bin_size
        bin_end = bin_start + bin_size
        count = int(np.count_nonzero((values >= bin_start) & (values < bin_end)))
        density_map.append(DensityBin(altitude=bin_start + bin_size / 2, image_count=count))

    quality_score = 100.0
    if total_range > 0:
        quality_score -= (sum(gap.size for gap in gaps) / total_range) * GAP_PENALTY_WEIGHT
    average_density = len(values) / total_range if total_range > 0 else 0.0
    if average_density < LOW_DENSITY_IMAGES_PER_METER:
        quality_score -= LOW_DENSITY_PENALTY
    if len(values) >= HIGH_COUNT_THRESHOLD:
        quality_score += HIGH_COUNT_BONUS
    quality_score = max(0.0, min(100.0, quality_score))

    return BladeCoverage(
        total_coverage=total_coverage,
        gaps=gaps,
        density_map=density_map,
        quality_score=quality_score,
    )


def validate_blade_data(images: Sequence[TurbineImage]) -> BladeValidation:
    """Capture-quality warnings and recommendations for a blade/side set"""
    if not images:
        return BladeValidation(
            is_valid=False,
            warnings=["No images provided"],
            recommendations=["Upload turbine blade images to begin analysis"],
            quality_score=0.0,
        )

    warnings: List[str] = []
    recommendations: List[str] = []
    metrics = compute_blade_metrics(images)
    coverage = compute_blade_coverage(images)
    score = 100.0

    if len(images) < 5:
        warnings.append("Very few images - may not provide adequate blade coverage")
        recommendations.append("Capture more images along the blade length for better coverage")
        score -= 20
    elif len(images) < 10:
        warnings.append("Limited images - consider capturing more for complete coverage")
        recommendations.append("Add more images to improve blade analysis accuracy")
        score -= 10

    if metrics.length_meters < 5:
        warnings.append("Blade coverage seems very short - may not represent full blade")
        recommendations.append("Ensure drone captures the full blade length from root to tip")
        score -= 15
    elif metrics.length_meters < 20:
        warnings.append("Blade coverage is relatively short")
        recommendations.append("Consider extending coverage to capture more of the blade length")
        score -= 5

    if coverage.gaps:
        total_gap = sum(gap.size for gap in coverage.gaps)
        warnings.append(f"{len(coverage.gaps)} coverage gaps detected (total: {total_gap:.1f}m)")
        recommendations.append("Capture additional images to fill coverage gaps for complete inspection")
        score -= len(coverage.gaps) * 8

    gsd_values = np.asarray([img.gsd_cm_per_pixel for img in images if img.gsd_cm_per_pixel > 0], dtype=float)
    if gsd_values.size > 0:
        variation_percent = float(gsd_values.std() / gsd_values.mean() * 100)
        if variation_percent > 50:
            warnings.append("Very high variation in image resolution (GSD)")
            recommendations.append("Maintain consistent distance to blade during capture for uniform resolution")
            score -= 20
        elif variation_percent > 30:
            warnings.append("High variation in image resolution (GSD)")
            recommendations.append("Try to maintain more consistent distance to blade during capture")
            score -= 10

    altitudes = sorted_altitudes(images)
    if metrics.average_spacing > 0 and len(altitudes) > 2:
        spacings = np.diff(np.asarray(altitudes, dtype=float))
        if spacings.max() > spacings.mean() * 3:
            warnings.append("Inconsistent spacing between images along blade")
            recommendations.append("Maintain more consistent spacing between image capture points")
            score -= 5

    if len(images) >= 15 and not coverage.gaps:
        score += 5
    if gsd_values.size > 0 and 0.05 <= float(gsd_values.mean()) <= 0.5:
        # typical blade inspection resolution
        score += 5

    return BladeValidation(
        is_valid=not warnings,
        warnings=warnings,
        recommendations=recommendations,
        quality_score=max(0.0, min(100.0, score)),
    )


def find_closest_image_to_altitude(images: Sequence[TurbineImage], target_altitude: float) -> Optional[ClosestImage]:
    """First image with the smallest altitude difference to ``target_altitude``"""
    if not images:
        return None
    best_index = 0
    best_distance = abs(images[0].flight_height - target_altitude)
    for index, img in enumerate(images):
        distance = abs(img.flight_height - target_altitude)
        if distance < best_distance:
            best_index, best_distance = index, distance
    return ClosestImage(image=images[best_index], index=best_index, distance=best_distance)


def get_blade_inspection_stats(images: Sequence[TurbineImage]) -> BladeInspectionStats:
    gsd_values = sorted(img.gsd_cm_per_pixel for img in images if img.gsd_cm_per_pixel > 0)
    altitudes = sorted_altitudes(images)

    gsd_stats = ValueStats()
    if gsd_values:
        gsd_stats = ValueStats(
            min=gsd_values[0],
            max=gsd_values[-1],
            avg=float(np.mean(gsd_values)),
            median=gsd_values[len(gsd_values) // 2],
            count=len(gsd_values),
        )

    altitude_stats = AltitudeStats()
    if altitudes:
        altitude_stats = AltitudeStats(
            min=altitudes[0],
            max=altitudes[-1],
            range=altitudes[-1] - altitudes[0],
            count=len(altitudes),
        )

    return BladeInspectionStats(
        coverage=compute_blade_coverage(images),
        metrics=compute_blade_metrics(images),
        validation=validate_blade_data(images),
        gsd_stats=gsd_stats,
        altitude_stats=altitude_stats,
    )


def build_blade_context(image: TurbineImage, metrics: BladeMetrics) -> BladeContext:
    """Blade context for measuring on ``image`` within the blade described by ``metrics``"""
    return BladeContext(
        current_altitude=image.flight_height or metrics.min_altitude,
        min_altitude=metrics.min_altitude,
        max_altitude=metrics.max_altitude,
        blade_length=metrics.length_meters,
        current_image_position=compute_image_position(image, metrics),
    )
