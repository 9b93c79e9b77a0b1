from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
import logging

from core.config import settings
from models.enums import Blade, BladeSide, DistanceConfidence
from models.measurement import Measurement
from schemas.blade import RulerIntervals
from schemas.turbine import (
    AltitudeCoverage,
    BladeModelResponse,
    ImageMeasurementData,
    ImageQueryCounts,
    ImageQueryFilters,
    MeasureRequest,
    MeasureResponse,
    MeasurementDataRequest,
    MeasurementDataResponse,
    MeasurementDataSummary,
    TurbineImagesResponse,
)
from schemas.validation import ValidationResult
from services.blade_geometry import (
    build_blade_context,
    compute_blade_coverage,
    compute_blade_metrics,
    compute_image_positions,
    filter_images,
    get_blade_inspection_stats,
)
from services.image_store import SORT_FIELDS, TurbineImageStore, get_image_store, sort_images, summarize
from services.image_validation import generate_quality_report, validate_turbine_images
from services.measurement import REASON_UNAVAILABLE, MeasurementBook, create_measurement, measure
from services.ruler import select_ruler_intervals

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/turbine-images", tags=["turbine-images"])


def get_measurement_book(request: Request) -> MeasurementBook:
    """Application-scoped measurement lists"""
    book = getattr(request.app.state, "measurement_book", None)
    if book is None:
        book = MeasurementBook()
        request.app.state.measurement_book = book
    return book


async def _require_image(store: TurbineImageStore, image_id: str):
    image = await store.get(image_id)
    if image is None:
        raise HTTPException(status_code=404, detail=f"Image not found: {image_id}")
    return image


@router.get("", response_model=TurbineImagesResponse)
async def list_turbine_images(
    blade: Optional[Blade] = Query(None),
    side: Optional[BladeSide] = Query(None),
    sort_by: str = Query("altitude"),
    sort_order: str = Query("asc", pattern="^(asc|desc)$"),
    measurement_ready: bool = Query(False),
    store: TurbineImageStore = Depends(get_image_store),
):
    """
    List images for one blade/side, sorted.

    - **sort_by**: altitude, distance, gsd or timestamp
    - **measurement_ready**: only images with a positive GSD
    """
    if sort_by not in SORT_FIELDS:
        sort_by = "altitude"

    all_images = await store.load()
    images = filter_images(all_images, blade, side)
    if measurement_ready:
        images = [img for img in images if img.gsd_cm_per_pixel > 0]
    images = sort_images(images, sort_by, sort_order)

    return TurbineImagesResponse(
        images=images,
        summary=summarize(all_images),
        filters=ImageQueryFilters(
            blade=blade,
            side=side,
            sort_by=sort_by,
            sort_order=sort_order,
            measurement_ready=measurement_ready,
        ),
        metadata=ImageQueryCounts(
            total_filtered=len(images),
            total_all=len(all_images),
            measurement_ready_filtered=sum(1 for img in images if img.gsd_cm_per_pixel > 0),
        ),
    )


@router.post("/measurements", response_model=MeasurementDataResponse)
async def get_measurement_data(
    payload: MeasurementDataRequest,
    store: TurbineImageStore = Depends(get_image_store),
):
    """Measurement readiness of selected images"""
    wanted = set(payload.image_ids)
    selected = [img for img in await store.load() if img.id in wanted]

    measurements = [
        ImageMeasurementData(
            id=img.id,
            name=img.name,
            blade=img.blade,
            side=img.side,
            gsd_cm_per_pixel=img.gsd_cm_per_pixel,
            distance_to_blade=img.gsd.distance_to_blade_m if img.gsd else 0.0,
            altitude_above_ground=img.flight_height,
            distance_confidence=img.gsd.distance_confidence if img.gsd else DistanceConfidence.LOW,
            measurement_ready=img.gsd_cm_per_pixel > 0,
            width=img.width,
            height=img.height,
            capture_date=img.date,
        )
        for img in selected
    ]

    ready = [m for m in measurements if m.measurement_ready]
    altitudes = [m.altitude_above_ground for m in measurements if m.altitude_above_ground > 0]

    summary = MeasurementDataSummary(
        total_selected=len(selected),
        measurement_ready=len(ready),
        average_gsd_cm_per_pixel=round(sum(m.gsd_cm_per_pixel for m in ready) / len(ready), 2) if ready else 0.0,
        altitude_coverage=AltitudeCoverage(min=min(altitudes), max=max(altitudes)) if altitudes else None,
        blades_represented=sorted({m.blade for m in measurements}, key=lambda b: b.value),
        sides_represented=sorted({m.side for m in measurements}, key=lambda s: s.value),
        confidence_breakdown={
            level.value: sum(1 for m in measurements if m.distance_confidence == level)
            for level in (DistanceConfidence.HIGH, DistanceConfidence.MEDIUM, DistanceConfidence.LOW)
        },
    )
    return MeasurementDataResponse(measurements=measurements, summary=summary)


@router.get("/blade", response_model=BladeModelResponse)
async def get_blade_model(
    blade: Blade = Query(...),
    side: BladeSide = Query(...),
    store: TurbineImageStore = Depends(get_image_store),
):
    """Blade length, coverage and per-image positions for one blade/side"""
    images = await store.filter(blade, side)
    metrics = compute_blade_metrics(images, settings.blade_pixels_per_meter)
    positions = compute_image_positions(images, metrics)

    return BladeModelResponse(
        blade=blade,
        side=side,
        metrics=metrics,
        coverage=compute_blade_coverage(images),
        positions={img.id: position for img, position in zip(images, positions)},
        stats=get_blade_inspection_stats(images),
    )


@router.get("/validation", response_model=ValidationResult)
async def validate_images(
    blade: Optional[Blade] = Query(None),
    side: Optional[BladeSide] = Query(None),
    store: TurbineImageStore = Depends(get_image_store),
):
    return validate_turbine_images(await store.filter(blade, side))


@router.get("/validation/report", response_class=PlainTextResponse)
async def quality_report(
    blade: Optional[Blade] = Query(None),
    side: Optional[BladeSide] = Query(None),
    store: TurbineImageStore = Depends(get_image_store),
):
    return generate_quality_report(await store.filter(blade, side))


@router.get("/{image_id}/ruler", response_model=RulerIntervals)
async def get_ruler_intervals(
    image_id: str,
    zoom: float = Query(1.0, gt=0),
    scale_factor: float = Query(1.0, gt=0),
    store: TurbineImageStore = Depends(get_image_store),
):
    image = await _require_image(store, image_id)
    if image.gsd_cm_per_pixel <= 0:
        raise HTTPException(status_code=422, detail=f"Image {image_id} has no valid GSD; a ruler is not available")
    return select_ruler_intervals(image.gsd_cm_per_pixel, zoom, scale_factor)


@router.post("/{image_id}/measure", response_model=MeasureResponse)
async def measure_on_image(
    image_id: str,
    payload: MeasureRequest,
    store: TurbineImageStore = Depends(get_image_store),
    book: MeasurementBook = Depends(get_measurement_book),
):
    """
    Convert a pixel line on an image into a real-world measurement.

    Lines that are too short come back with ``valid=false`` and are not stored.
    Images without GSD are rejected with 422.
    """
    image = await _require_image(store, image_id)

    context = None
    if payload.with_blade_context:
        siblings = await store.filter(image.blade, image.side)
        metrics = compute_blade_metrics(siblings, settings.blade_pixels_per_meter)
        if metrics.length_meters > 0:
            context = build_blade_context(image, metrics)

    result = measure(payload.start, payload.end, image.gsd_cm_per_pixel, context)
    if result.reason == REASON_UNAVAILABLE:
        logger.warning(f"Measurement requested on image without GSD: {image_id}")
        raise HTTPException(
            status_code=422,
            detail=f"Image {image_id} has no valid GSD; measurement is not possible",
        )
    if not result.valid:
        return MeasureResponse(result=result)

    measurement = book.add(create_measurement(image, payload.start, payload.end, context, payload.label))
    logger.info(f"Measurement {measurement.id} on {image_id}: {measurement.distance_cm:.2f}cm")
    return MeasureResponse(result=result, measurement=measurement)


@router.get("/{image_id}/measurements", response_model=List[Measurement])
async def list_measurements(image_id: str, book: MeasurementBook = Depends(get_measurement_book)):
    return book.for_image(image_id)


@router.delete("/{image_id}/measurements/{measurement_id}")
async def delete_measurement(
    image_id: str,
    measurement_id: str,
    book: MeasurementBook = Depends(get_measurement_book),
):
    if not book.delete(image_id, measurement_id):
        raise HTTPException(status_code=404, detail=f"Measurement not found: {measurement_id}")
    return {"success": True, "deleted": measurement_id}


@router.delete("/{image_id}/measurements")
async def clear_measurements(image_id: str, book: MeasurementBook = Depends(get_measurement_book)):
    return {"success": True, "deleted_count": book.clear(image_id)}
