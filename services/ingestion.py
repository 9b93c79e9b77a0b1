"""
Per-image ingestion: metadata -> distance -> GSD record.

Distance precedence is manual override, then metadata, then interpolation
from the existing images. Any failure aborts only the image it belongs
to; batch ingestion collects the messages and carries on.
"""

import logging
import re
import time
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from core.exceptions import BladeGSDError, UnresolvedDistance
from models.enums import Blade, BladeSide, DistanceConfidence
from models.turbine_image import TurbineImage
from schemas.upload import BatchResult, GSDOutcome, UploadMetadata
from services.camera_specs import altitude_from_metadata, camera_from_metadata, capture_date_from_metadata
from services.distance_interpolation import estimate_distance
from services.distance_resolver import check_distance_source, resolve_upload_distance
from services.gsd_calculator import build_gsd_record, validate_blade_distance
from services.metadata import MetadataBag

logger = logging.getLogger(__name__)

MANUAL_SOURCE = "manual_input"

# DJI_<date>_<n>_<prefix>-<x>-<BLADE>-<SIDE>-...
_DJI_FOLDER = re.compile(r"DJI_\d+_\d+_[^-]+-[^-]+-([ABC])-([A-Z]{2})-")


@dataclass
class IngestionItem:
    """One file ready for ingestion"""
    name: str
    bag: MetadataBag
    width: int
    height: int
    blade: Blade
    side: BladeSide
    manual_distance: Optional[float] = None
    src: str = ""


def parse_folder_name(folder_name: str) -> Optional[Tuple[Blade, BladeSide]]:
    match = _DJI_FOLDER.search(folder_name or "")
    if not match:
        return None
    blade, side = match.groups()
    if side not in BladeSide.__members__:
        return None
    return Blade(blade), BladeSide(side)


def derive_blade_and_side(filename: str, metadata: Optional[UploadMetadata] = None) -> Tuple[Blade, BladeSide]:
    """Explicit metadata first, then folder name, then filename tokens; default A/TE"""
    blade = metadata.blade if metadata else None
    side = metadata.side if metadata else None

    if (blade is None or side is None) and metadata and metadata.folder_name:
        parsed = parse_folder_name(metadata.folder_name)
        if parsed:
            blade = blade or parsed[0]
            side = side or parsed[1]

    upper = (filename or "").upper()
    if blade is None:
        blade = next((b for b in Blade if f"-{b.value}-" in upper or f"_{b.value}_" in upper), Blade.A)
    if side is None:
        side = next((s for s in BladeSide if f"-{s.value}-" in upper or f"_{s.value}_" in upper), BladeSide.TE)
    return blade, side


def resolve_image_gsd(
    bag: MetadataBag,
    width: int,
    height: int,
    blade: Blade,
    side: BladeSide,
    existing_images: Sequence[TurbineImage],
    manual_distance: Optional[float] = None,
) -> GSDOutcome:
    """
    GSD record for one image.

    Raises UnresolvedDistance, FocusDistanceMisuse, ImplausibleDistance,
    InvalidImageDimensions or ImplausibleGSD.
    """
    resolution = resolve_upload_distance(bag)
    distance = resolution.distance_m
    source = resolution.source
    confidence = resolution.confidence
    note = None

    if manual_distance is not None and manual_distance > 0:
        if resolution.is_resolved:
            logger.info(
                f"Manual distance {manual_distance}m overrides {source}={distance}m"
            )
        distance, source, confidence = manual_distance, MANUAL_SOURCE, DistanceConfidence.HIGH
    elif not resolution.is_resolved:
        stats = estimate_distance(existing_images, blade, side)
        if stats.mean_distance <= 0:
            raise UnresolvedDistance()
        distance = stats.median_distance
        source = f"interpolated_from_{stats.sample_count}_images"
        # interpolation is always one level less trustworthy than the sample set
        confidence = stats.confidence.downgrade()
        note = (
            f"Used interpolated distance {distance:.2f}m (median of {stats.sample_count} similar images, "
            f"range: {stats.valid_distances[0]:.1f}-{stats.valid_distances[-1]:.1f}m)"
        )

    check_distance_source(source)
    validate_blade_distance(distance)

    camera = camera_from_metadata(bag)
    flight_height, altitude_source = altitude_from_metadata(bag)
    gsd = build_gsd_record(
        camera,
        distance,
        width,
        height,
        flight_height_m=flight_height,
        altitude_source=altitude_source,
        distance_source=source,
        distance_confidence=confidence,
    )
    return GSDOutcome(gsd=gsd, camera=camera, interpolation_note=note)


def ingest_batch(
    items: Sequence[IngestionItem],
    existing_images: Sequence[TurbineImage],
    timestamp: Optional[int] = None,
) -> BatchResult:
    """
    Ingest every item against a fixed snapshot of ``existing_images``.

    Images from the same batch are not used for interpolation.
    """
    timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
    snapshot = list(existing_images)
    result = BatchResult()

    for index, item in enumerate(items):
        try:
            outcome = resolve_image_gsd(
                item.bag,
                item.width,
                item.height,
                item.blade,
                item.side,
                snapshot,
                item.manual_distance,
            )
        except BladeGSDError as e:
            logger.warning(f"Rejected {item.name}: {e}")
            result.errors.append(f"{item.name}: {e}")
            continue

        image = TurbineImage(
            id=f"{item.blade.value}_{item.side.value}_{timestamp}_{index}",
            name=item.name,
            orig_img_src=item.src,
            width=item.width,
            height=item.height,
            blade=item.blade,
            side=item.side,
            camera=outcome.camera,
            gsd=outcome.gsd,
            date=capture_date_from_metadata(item.bag),
        )
        result.images.append(image)

        if outcome.interpolation_note:
            result.interpolation_log.append(f"{item.name}: {outcome.interpolation_note}")
        logger.info(
            f"Processed {item.name}: {outcome.gsd.gsd_cm_per_pixel:.4f} cm/px, "
            f"distance {outcome.gsd.distance_to_blade_m}m ({outcome.gsd.distance_source}, "
            f"{outcome.gsd.distance_confidence.value}), altitude {outcome.gsd.flight_height_m}m"
        )

    return result
