"""
Metadata distance resolver.

Finds the camera-to-blade distance in a metadata bag using an ordered
field priority:

1. free-text fields (high confidence) scanned with distance patterns
2. numeric subject-distance fields (medium confidence)
3. focus distances (low confidence), reported but never accepted

Two entry points share the scan but apply different bounds: read-time
resolution accepts anything in (0, 1000) m, upload-time resolution is
stricter (0.1-200 m for text, 0.5-100 m for subject distance).
"""

import logging
import re
from typing import List, Optional, Sequence, Tuple

from core.exceptions import FocusDistanceMisuse
from models.enums import DistanceConfidence
from schemas.blade import DistanceResolution
from services.metadata import MetadataBag

logger = logging.getLogger(__name__)

_NUMBER = r"(\d+(?:\.\d+)?)"

DISTANCE_PATTERNS: List[re.Pattern] = [
    re.compile(rf"(?:distance|dist|range)\s*[:=]?\s*{_NUMBER}\s*m?(?:eter)?s?", re.IGNORECASE),
    re.compile(rf"{_NUMBER}\s*m(?:eter)?s?\s*(?:distance|dist|range|to|away)", re.IGNORECASE),
    re.compile(rf"(?:blade|subject|target)\s*[:=]?\s*{_NUMBER}\s*m?", re.IGNORECASE),
    re.compile(rf"^{_NUMBER}\s*m$", re.IGNORECASE),  # bare "30m"
    re.compile(rf"{_NUMBER}\s*meters?\s*(?:to|from|away)", re.IGNORECASE),
]

# Read-time field priority
TEXT_FIELDS: Tuple[str, ...] = (
    "UserComment",
    "EXIF:UserComment",
    "ImageDescription",
    "XMP:Description",
    "Comments",
    "Comment",
    "IPTC:SpecialInstructions",
)
SUBJECT_DISTANCE_FIELDS: Tuple[str, ...] = (
    "SubjectDistance",
    "EXIF:SubjectDistance",
    "Composite:SubjectDistance",
    "XMP:SubjectDistance",
)
FOCUS_FIELDS: Tuple[str, ...] = (
    "FocusDistance",
    "XMP:FocusDistance",
    "HyperfocalDistance",
    "Composite:HyperfocalDistance",
)

# Upload-time field priority
UPLOAD_TEXT_FIELDS: Tuple[str, ...] = (
    "EXIF:UserComment",
    "UserComment",
    "Comment",
    "XMP:UserComment",
    "IPTC:SpecialInstructions",
    "ImageDescription",
    "XMP:Description",
)
UPLOAD_SUBJECT_DISTANCE_FIELDS: Tuple[str, ...] = (
    "EXIF:SubjectDistance",
    "SubjectDistance",
    "Camera:SubjectDistance",
    "Composite:SubjectDistance",
)

# (exclusive lower, exclusive upper) in meters
METADATA_BOUNDS = (0.0, 1000.0)
UPLOAD_TEXT_BOUNDS = (0.1, 200.0)
UPLOAD_SUBJECT_BOUNDS = (0.5, 100.0)


def _within(value: float, bounds: Tuple[float, float]) -> bool:
    low, high = bounds
    return low < value < high


def extract_distance_from_text(text: str, bounds: Tuple[float, float] = METADATA_BOUNDS) -> Optional[float]:
    """First pattern match inside ``bounds``, or None"""
    text = text.strip()
    if not text:
        return None
    for pattern in DISTANCE_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        distance = float(match.group(1))
        if _within(distance, bounds):
            return distance
    return None


def _scan(
    bag: MetadataBag,
    text_fields: Sequence[str],
    subject_fields: Sequence[str],
    text_bounds: Tuple[float, float],
    subject_bounds: Tuple[float, float],
) -> DistanceResolution:
    for field in text_fields:
        text = bag.get_text(field)
        if text is None:
            continue
        distance = extract_distance_from_text(text, text_bounds)
        if distance is not None:
            return DistanceResolution(
                distance_m=distance,
                source=field,
                confidence=DistanceConfidence.HIGH,
                raw_value=text,
            )

    for field in subject_fields:
        distance = bag.get_number(field)
        if distance is not None and _within(distance, subject_bounds):
            return DistanceResolution(
                distance_m=distance,
                source=field,
                confidence=DistanceConfidence.MEDIUM,
                raw_value=bag.get(field),
            )

    return DistanceResolution.not_found()


def resolve_distance(bag: MetadataBag) -> DistanceResolution:
    """Read-time resolution; focus distances are never returned"""
    return _scan(bag, TEXT_FIELDS, SUBJECT_DISTANCE_FIELDS, METADATA_BOUNDS, METADATA_BOUNDS)


def resolve_upload_distance(bag: MetadataBag) -> DistanceResolution:
    """Upload-time resolution with the stricter ingestion bounds"""
    resolution = _scan(
        bag,
        UPLOAD_TEXT_FIELDS,
        UPLOAD_SUBJECT_DISTANCE_FIELDS,
        UPLOAD_TEXT_BOUNDS,
        UPLOAD_SUBJECT_BOUNDS,
    )
    if not resolution.is_resolved:
        focus = find_focus_distance(bag)
        if focus is not None:
            logger.info(
                f"Ignoring {focus.source}={focus.distance_m}m: focus distance is not a blade distance"
            )
    return resolution


def find_focus_distance(bag: MetadataBag) -> Optional[DistanceResolution]:
    """Informational low-confidence focus distance; never use it for measurement"""
    for field in FOCUS_FIELDS:
        distance = bag.get_number(field)
        if distance is not None and _within(distance, METADATA_BOUNDS):
            return DistanceResolution(
                distance_m=distance,
                source=field,
                confidence=DistanceConfidence.LOW,
                raw_value=bag.get(field),
            )
    return None


def is_focus_source(source: Optional[str]) -> bool:
    return bool(source) and "focus" in source.lower()


def check_distance_source(source: str) -> None:
    """Raise FocusDistanceMisuse for any focus-distance-named source"""
    if is_focus_source(source):
        raise FocusDistanceMisuse(source)
