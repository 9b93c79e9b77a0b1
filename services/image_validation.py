"""
Measurement-readiness validation for stored turbine images.

Stored GSD records are checked again at read time: implausible values are
warnings, focus-distance sources are errors that require re-processing.
"""

import logging
from typing import List, Sequence

from models.enums import DistanceConfidence
from models.turbine_image import TurbineImage
from schemas.validation import SingleImageValidation, ValidationResult, ValidationStatistics
from services.distance_resolver import is_focus_source
from services.gsd_calculator import is_plausible_blade_distance, is_plausible_gsd

logger = logging.getLogger(__name__)


def _label(image: TurbineImage) -> str:
    return f"{image.blade.value}-{image.side.value} ({image.name or image.id})"


def validate_turbine_images(images: Sequence[TurbineImage]) -> ValidationResult:
    if not images:
        return ValidationResult(
            is_valid=False,
            errors=["No images found"],
            suggestions=["Upload some turbine blade images to get started"],
        )

    warnings: List[str] = []
    errors: List[str] = []
    suggestions: List[str] = []
    stats = ValidationStatistics(total_images=len(images))
    gsd_values: List[float] = []

    for image in images:
        label = _label(image)
        gsd = image.gsd
        if gsd is None or gsd.gsd_cm_per_pixel <= 0:
            errors.append(f"Image {label}: No valid GSD data")
            continue

        if is_plausible_gsd(gsd.gsd_cm_per_pixel):
            stats.valid_for_measurement += 1
            gsd_values.append(gsd.gsd_cm_per_pixel)
        else:
            warnings.append(f"Image {label}: Unusual GSD value ({gsd.gsd_cm_per_pixel:.4f} cm/pixel)")

        if gsd.distance_confidence == DistanceConfidence.HIGH:
            stats.high_confidence_distance += 1
        elif gsd.distance_confidence == DistanceConfidence.MEDIUM:
            stats.medium_confidence_distance += 1
        else:
            stats.low_confidence_distance += 1
            warnings.append(f"Image {label}: Low confidence distance measurement")

        if is_focus_source(gsd.distance_source):
            errors.append(
                f"Image {label}: Using focus distance instead of blade distance (Source: {gsd.distance_source})"
            )

        if not is_plausible_blade_distance(gsd.distance_to_blade_m):
            warnings.append(
                f"Image {label}: Distance to blade ({gsd.distance_to_blade_m}m) seems unusual for turbine blade inspection"
            )

        source = gsd.distance_source.lower()
        if "comment" not in source and "subject" not in source and gsd.distance_confidence != DistanceConfidence.HIGH:
            suggestions.append(f"Image {label}: Consider adding explicit distance information to image metadata")

    if gsd_values:
        stats.average_gsd = sum(gsd_values) / len(gsd_values)
        stats.gsd_min = min(gsd_values)
        stats.gsd_max = max(gsd_values)

    if stats.low_confidence_distance > 0:
        suggestions.append("Consider re-uploading images with explicit distance-to-blade information in EXIF metadata")
    if stats.valid_for_measurement < len(images) * 0.8:
        suggestions.append("Less than 80% of images are suitable for measurement. Check EXIF metadata quality")
    if stats.gsd_min > 0 and stats.gsd_max / stats.gsd_min > 10:
        warnings.append("Large variation in GSD values detected. This may indicate inconsistent distance measurements")

    needing_reprocessing = get_images_needing_reprocessing(images)
    if needing_reprocessing:
        errors.append(
            f"{len(needing_reprocessing)} images are using focus distance instead of blade distance. "
            "These need to be re-processed."
        )
        suggestions.append("Re-upload images with proper blade distance metadata, or add manual distance during upload")

    return ValidationResult(
        is_valid=not errors and stats.valid_for_measurement > 0,
        warnings=warnings,
        errors=errors,
        suggestions=suggestions,
        statistics=stats,
    )


def validate_single_image(image: TurbineImage) -> SingleImageValidation:
    gsd = image.gsd
    if gsd is None or gsd.gsd_cm_per_pixel <= 0:
        return SingleImageValidation(can_measure=False, issues=["No valid GSD data found"], gsd_quality="unusable")

    issues: List[str] = []
    uses_focus = is_focus_source(gsd.distance_source)
    if uses_focus:
        issues.append("Using focus distance instead of blade distance - measurements may be inaccurate")

    if gsd.distance_to_blade_m < 0.5:
        issues.append("Distance to blade seems too close (< 0.5m)")
    elif gsd.distance_to_blade_m > 100:
        issues.append("Distance to blade seems too far (> 100m)")

    value = gsd.gsd_cm_per_pixel
    if not is_plausible_gsd(value):
        quality = "unusable"
        issues.append(f"Unrealistic GSD value: {value:.4f} cm/pixel")
    elif value > 10:
        quality = "poor"
        issues.append("Very low resolution for detailed measurements")
    elif value < 0.01:
        quality = "excellent"
    elif value < 0.1:
        quality = "good"
    else:
        quality = "poor"

    if gsd.distance_confidence == DistanceConfidence.LOW:
        issues.append("Low confidence in distance measurement")

    return SingleImageValidation(
        can_measure=quality != "unusable" and not uses_focus,
        issues=issues,
        gsd_quality=quality,
    )


def get_measurement_ready_images(images: Sequence[TurbineImage]) -> List[TurbineImage]:
    return [img for img in images if validate_single_image(img).can_measure]


def get_images_needing_reprocessing(images: Sequence[TurbineImage]) -> List[TurbineImage]:
    return [img for img in images if img.gsd is not None and is_focus_source(img.gsd.distance_source)]


def generate_quality_report(images: Sequence[TurbineImage]) -> str:
    validation = validate_turbine_images(images)
    stats = validation.statistics

    lines = [
        "TURBINE IMAGE QUALITY REPORT",
        "================================",
        "",
        f"Total Images: {stats.total_images}",
        f"Valid for Measurement: {stats.valid_for_measurement}",
        f"Average GSD: {stats.average_gsd:.4f} cm/pixel",
        f"GSD Range: {stats.gsd_min:.4f} - {stats.gsd_max:.4f} cm/pixel",
        "",
        "DISTANCE CONFIDENCE BREAKDOWN:",
        f"High Confidence: {stats.high_confidence_distance}",
        f"Medium Confidence: {stats.medium_confidence_distance}",
        f"Low Confidence: {stats.low_confidence_distance}",
        "",
    ]
    for title, entries in (("ERRORS:", validation.errors), ("WARNINGS:", validation.warnings), ("SUGGESTIONS:", validation.suggestions)):
        if entries:
            lines.append(title)
            lines.extend(f"- {entry}" for entry in entries)
            lines.append("")

    lines.append(f"Overall Status: {'READY FOR MEASUREMENT' if validation.is_valid else 'NEEDS ATTENTION'}")
    return "\n".join(lines) + "\n"
