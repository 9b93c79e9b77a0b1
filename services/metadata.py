#!/usr/bin/env python3
"""
Image Metadata Provider
Turns an image file into a MetadataBag of namespaced tags

The distance, altitude and camera lookups never touch the raw extractor
output directly; they read it through MetadataBag so that "tag absent"
and "tag present with value 0" are never conflated.
"""

import asyncio
import json
import logging
import math
import re
import shutil
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from PIL import Image
from PIL.ExifTags import TAGS, GPSTAGS

from core.config import settings
from core.exceptions import MetadataExtractionError

logger = logging.getLogger(__name__)

# Tags the resolver, altitude and camera lookups know how to read
RECOGNIZED_TAGS = frozenset({
    # Free-text distance statements
    "UserComment", "EXIF:UserComment", "XMP:UserComment",
    "ImageDescription", "EXIF:ImageDescription", "XMP:Description",
    "Comments", "Comment", "IPTC:SpecialInstructions",
    # Measured subject distance
    "SubjectDistance", "EXIF:SubjectDistance", "Composite:SubjectDistance",
    "XMP:SubjectDistance", "Camera:SubjectDistance",
    # Focus distances (informational only)
    "FocusDistance", "XMP:FocusDistance", "HyperfocalDistance", "Composite:HyperfocalDistance",
    # Altitude
    "XMP:RelativeAltitude", "RelativeAltitude", "GPS:GPSAltitude", "GPSAltitude",
    # Camera
    "EXIF:Make", "Make", "EXIF:Model", "Model",
    "EXIF:FocalLength", "FocalLength", "Camera:FocalLength",
    # Capture time
    "EXIF:DateTime", "DateTime", "EXIF:DateTimeOriginal", "DateTimeOriginal",
})

_LEADING_NUMBER = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+))")


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a metadata value as a float.

    Accepts numbers, rationals and text with a leading number ("30", "30.0 m",
    "+35.20"). Booleans, non-numeric text, NaN and infinities give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (list, tuple)):
        return parse_number(value[0]) if len(value) > 0 else None
    if isinstance(value, (int, float)):
        number = float(value)
    elif hasattr(value, "numerator") and hasattr(value, "denominator"):
        if not value.denominator:
            return None
        number = float(value.numerator) / float(value.denominator)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value)
        if not match:
            return None
        number = float(match.group(1))
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


class MetadataBag:
    """Read-only typed lookup over a flat tag -> value mapping"""

    def __init__(self, raw: Optional[Mapping[str, Any]] = None):
        self._raw: Dict[str, Any] = dict(raw or {})

    def get(self, tag: str) -> Optional[Any]:
        value = self._raw.get(tag)
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def get_text(self, tag: str) -> Optional[str]:
        value = self.get(tag)
        return value if isinstance(value, str) else None

    def get_number(self, tag: str) -> Optional[float]:
        return parse_number(self.get(tag))

    def first(self, tags: Iterable[str]) -> Optional[Tuple[str, Any]]:
        """First (tag, value) present among ``tags``, in order"""
        for tag in tags:
            value = self.get(tag)
            if value is not None:
                return tag, value
        return None

    def recognized(self) -> Dict[str, Any]:
        return {k: v for k, v in self._raw.items() if k in RECOGNIZED_TAGS}

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._raw)

    def is_empty(self) -> bool:
        return not self._raw

    def __contains__(self, tag: str) -> bool:
        return self.get(tag) is not None

    def __len__(self) -> int:
        return len(self._raw)

    def __repr__(self):
        return f"<MetadataBag(tags={len(self._raw)}, recognized={len(self.recognized())})>"


def _clean_value(value: Any) -> Any:
    """Recursively clean EXIF values so they survive JSON serialization"""
    if value is None or isinstance(value, (int, float, bool)):
        return value
    if isinstance(value, bytes):
        return _decode_user_comment(value)
    if isinstance(value, str):
        cleaned = value.replace('\x00', '')
        return ''.join(char for char in cleaned if ord(char) >= 32 or char in '\n\r\t')
    if isinstance(value, (list, tuple)):
        return [_clean_value(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _clean_value(v) for k, v in value.items()}
    if hasattr(value, 'numerator') and hasattr(value, 'denominator'):
        # IFDRational
        return parse_number(value)
    return _clean_value(str(value))


def _decode_user_comment(raw: bytes) -> str:
    """EXIF UserComment carries an 8-byte character code prefix"""
    prefix, body = raw[:8], raw[8:]
    if prefix.startswith(b"UNICODE"):
        text = body.decode("utf-16", errors="ignore")
    elif prefix.startswith(b"ASCII") or prefix == b"\x00" * 8:
        text = body.decode("ascii", errors="ignore")
    else:
        text = raw.decode("utf-8", errors="ignore")
    return _clean_value(text)


class ExifToolMetadataProvider:
    """Runs the external exiftool binary and returns its first JSON object"""

    def __init__(self, command: Optional[str] = None, timeout: Optional[float] = None):
        self.command = command or settings.exiftool_command
        self.timeout = timeout if timeout is not None else settings.exiftool_timeout_seconds

    @staticmethod
    def is_available(command: Optional[str] = None) -> bool:
        return shutil.which(command or settings.exiftool_command) is not None

    async def extract(self, file_path: Union[str, Path]) -> MetadataBag:
        args = [
            self.command, "-json", "-All", "-groupNames", "-duplicates", "-struct",
            "-coordFormat", "%.8f", str(file_path),
        ]
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise MetadataExtractionError(f"ExifTool execution failed: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            process.kill()
            await process.wait()
            raise MetadataExtractionError(
                f"ExifTool timed out after {self.timeout}s for {file_path}"
            ) from e

        error_text = stderr.decode(errors="ignore").strip()
        if error_text and "Warning" not in error_text and "minor" not in error_text:
            logger.warning(f"ExifTool stderr for {file_path}: {error_text}")

        try:
            parsed = json.loads(stdout.decode(errors="ignore") or "[]")
        except json.JSONDecodeError as e:
            raise MetadataExtractionError(f"ExifTool returned invalid JSON for {file_path}") from e

        data = parsed[0] if isinstance(parsed, list) and parsed else {}
        if not data:
            raise MetadataExtractionError("No EXIF data found")
        return MetadataBag(data)


class PillowMetadataProvider:
    """In-process fallback reading EXIF, GPS and DJI XMP attributes with Pillow"""

    _XMP_ATTRIBUTE = re.compile(r'(?:drone-dji|Camera|xmp|dc):(\w+)="([^"]*)"')

    async def extract(self, file_path: Union[str, Path]) -> MetadataBag:
        loop = asyncio.get_event_loop()
        try:
            data = await loop.run_in_executor(None, self._read, Path(file_path))
        except (OSError, SyntaxError) as e:
            raise MetadataExtractionError(f"Could not read metadata from {file_path}: {e}") from e
        if not data:
            raise MetadataExtractionError("No EXIF data found")
        return MetadataBag(data)

    def _read(self, file_path: Path) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        with Image.open(file_path) as img:
            exif = img._getexif() if hasattr(img, '_getexif') else None
            for tag_id, value in (exif or {}).items():
                tag = TAGS.get(tag_id, str(tag_id))
                if tag == "GPSInfo" and isinstance(value, dict):
                    for gps_id, gps_value in value.items():
                        data[f"GPS:{GPSTAGS.get(gps_id, gps_id)}"] = _clean_value(gps_value)
                    continue
                data[f"EXIF:{tag}"] = _clean_value(value)

            xmp = img.info.get("xmp")
            if isinstance(xmp, bytes):
                xmp = xmp.decode("utf-8", errors="ignore")
            if isinstance(xmp, str):
                for name, value in self._XMP_ATTRIBUTE.findall(xmp):
                    data.setdefault(f"XMP:{name}", value)
        return data


def read_image_dimensions(file_path: Union[str, Path]) -> Tuple[int, int]:
    """Pixel width/height, falling back to the configured camera default"""
    try:
        with Image.open(file_path) as img:
            return img.width, img.height
    except (OSError, SyntaxError) as e:
        logger.warning(f"Could not read dimensions of {file_path}: {e}; using defaults")
        return settings.default_image_width, settings.default_image_height


def get_metadata_provider():
    """FastAPI dependency: exiftool when installed, Pillow otherwise"""
    if ExifToolMetadataProvider.is_available():
        return ExifToolMetadataProvider()
    logger.warning("ExifTool not found; falling back to Pillow metadata extraction")
    return PillowMetadataProvider()
