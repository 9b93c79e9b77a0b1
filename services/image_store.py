"""
JSON-file store for the turbine image collection.

The whole collection is one JSON array, rewritten on every save and kept
sorted by flight height.
"""

import asyncio
import json
import logging
import os
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

import aiofiles
from fastapi import Request
from pydantic import ValidationError

from core.config import settings
from models.enums import Blade, BladeSide
from models.turbine_image import TurbineImage
from schemas.turbine import GSDRangeSummary, RangeSummary, TurbineImagesSummary
from services.blade_geometry import filter_images, sorted_altitudes

logger = logging.getLogger(__name__)

SORT_FIELDS = ("altitude", "distance", "gsd", "timestamp")


class TurbineImageStore:
    """Loads and saves the image collection; `add` is serialized per store"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def load(self) -> List[TurbineImage]:
        if not self.path.exists():
            return []
        try:
            async with aiofiles.open(self.path, "r", encoding="utf-8") as f:
                raw = json.loads(await f.read())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load turbine images from {self.path}: {e}")
            return []

        if not isinstance(raw, list):
            logger.error(f"Turbine data in {self.path} is not an array: {type(raw).__name__}")
            return []

        images: List[TurbineImage] = []
        for entry in raw:
            try:
                images.append(TurbineImage.model_validate(entry))
            except ValidationError as e:
                logger.warning(f"Skipping malformed image record {entry.get('id') if isinstance(entry, dict) else entry!r}: {e}")
        return images

    async def save(self, images: Sequence[TurbineImage]) -> None:
        ordered = sorted(images, key=lambda img: img.flight_height)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([img.model_dump(mode="json") for img in ordered], indent=2)
        tmp_path = self.path.with_name(f"{self.path.name}.{uuid.uuid4().hex}.tmp")
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(payload)
        os.replace(tmp_path, self.path)

    async def add(self, new_images: Sequence[TurbineImage]) -> List[TurbineImage]:
        """Append images and return the full saved collection"""
        async with self._lock:
            images = await self.load() + list(new_images)
            await self.save(images)
        return sorted(images, key=lambda img: img.flight_height)

    async def filter(self, blade: Optional[Blade] = None, side: Optional[BladeSide] = None) -> List[TurbineImage]:
        return filter_images(await self.load(), blade, side)

    async def get(self, image_id: str) -> Optional[TurbineImage]:
        for image in await self.load():
            if image.id == image_id:
                return image
        return None


def _timestamp(image: TurbineImage) -> float:
    if not image.date:
        return 0.0
    try:
        return datetime.strptime(image.date, "%Y:%m:%d %H:%M:%S").timestamp()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(image.date).timestamp()
    except ValueError:
        return 0.0


def sort_images(images: Sequence[TurbineImage], sort_by: str = "altitude", order: str = "asc") -> List[TurbineImage]:
    keys = {
        "altitude": lambda img: img.flight_height,
        "distance": lambda img: img.gsd.distance_to_blade_m if img.gsd else 0.0,
        "gsd": lambda img: img.gsd_cm_per_pixel,
        "timestamp": _timestamp,
    }
    key = keys.get(sort_by, keys["altitude"])
    return sorted(images, key=key, reverse=order == "desc")


def summarize(images: Sequence[TurbineImage]) -> TurbineImagesSummary:
    summary = TurbineImagesSummary(total=len(images))
    if not images:
        return summary

    for image in images:
        summary.by_blade[image.blade.value] += 1
        summary.by_side[image.side.value] += 1

    gsd_values = [img.gsd_cm_per_pixel for img in images if img.gsd_cm_per_pixel > 0]
    summary.measurement_ready = len(gsd_values)

    altitudes = sorted_altitudes(images)
    if altitudes:
        summary.altitude_range = RangeSummary(min=altitudes[0], max=altitudes[-1], span=altitudes[-1] - altitudes[0])
    if gsd_values:
        summary.gsd_range = GSDRangeSummary(
            min=min(gsd_values),
            max=max(gsd_values),
            average=sum(gsd_values) / len(gsd_values),
        )
    return summary


def get_image_store(request: Request) -> TurbineImageStore:
    """FastAPI dependency: one store per application so uploads share its lock"""
    store = getattr(request.app.state, "image_store", None)
    if store is None:
        store = TurbineImageStore(settings.turbine_data_file)
        request.app.state.image_store = store
    return store
