import io

import pytest
from PIL import Image

from models.enums import Blade, BladeSide, DistanceConfidence
from models.turbine_image import CameraSpecs, GSDRecord, TurbineImage


def gsd_record(
    altitude=50.0,
    distance=30.0,
    gsd_cm=0.8,
    source="EXIF:UserComment",
    confidence=DistanceConfidence.HIGH,
):
    return GSDRecord(
        gsd_width_m=gsd_cm / 100,
        gsd_height_m=gsd_cm / 100,
        gsd_cm_per_pixel=gsd_cm,
        flight_height_m=altitude,
        distance_to_blade_m=distance,
        altitude_source="relative_altitude",
        distance_source=source,
        distance_confidence=confidence,
    )


def make_image(
    image_id="img",
    blade=Blade.A,
    side=BladeSide.TE,
    altitude=50.0,
    distance=30.0,
    gsd_cm=0.8,
    source="EXIF:UserComment",
    confidence=DistanceConfidence.HIGH,
    with_gsd=True,
    date=None,
):
    return TurbineImage(
        id=image_id,
        name=f"{image_id}.jpg",
        orig_img_src=f"/uploads/{image_id}.jpg",
        width=5280,
        height=3956,
        blade=blade,
        side=side,
        camera=CameraSpecs(focal_length_mm=12.29, sensor_width_mm=17.3, sensor_height_mm=13.0),
        gsd=gsd_record(altitude, distance, gsd_cm, source, confidence) if with_gsd else None,
        date=date,
    )


def jpeg_bytes(width=64, height=48):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(120, 120, 120)).save(buffer, format="JPEG")
    return buffer.getvalue()


@pytest.fixture
def blade_images():
    """Five A/TE images evenly spaced from 10m to 50m"""
    return [
        make_image(f"a_te_{i}", altitude=10.0 + i * 10, distance=30.0 + i * 0.1)
        for i in range(5)
    ]
