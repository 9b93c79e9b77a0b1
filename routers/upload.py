from typing import Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File as FastAPIFile, Request
from pathlib import Path
from pydantic import ValidationError
import aiofiles
import json
import logging
import re
import time

from core.config import settings
from core.exceptions import MetadataExtractionError
from schemas.upload import BatchResult, UploadMetadata, UploadResponse
from services.image_store import TurbineImageStore, get_image_store
from services.ingestion import IngestionItem, derive_blade_and_side, ingest_batch
from services.metadata import get_metadata_provider, read_image_dimensions

# Configure logger
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/upload", tags=["upload"])

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def _parse_file_metadata(raw, filename: str) -> Optional[UploadMetadata]:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        return UploadMetadata.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Ignoring invalid metadata for {filename}: {e}")
        return None


async def _save_upload(file: UploadFile, name: str) -> Path:
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / name
    async with aiofiles.open(path, "wb") as out:
        while True:
            chunk = await file.read(1024 * 1024)
            if not chunk:
                break
            await out.write(chunk)
    return path


@router.post("", response_model=UploadResponse)
async def upload_turbine_images(
    request: Request,
    files: List[UploadFile] = FastAPIFile(...),
    store: TurbineImageStore = Depends(get_image_store),
    provider=Depends(get_metadata_provider),
):
    """
    Upload blade images and compute their GSD.

    Each file may carry a ``metadata_<index>`` form field holding JSON with
    blade, side, folder_name and manual_distance. Images whose distance
    cannot be determined are reported in ``errors`` and skipped.
    """
    logger.info(f"Turbine image upload request received: {len(files) if files else 0} files")

    try:
        if not files:
            logger.error("No files provided in request")
            raise HTTPException(status_code=400, detail="No files provided")

        if len(files) > settings.max_files_per_upload:
            logger.error(f"Too many files: {len(files)} (max {settings.max_files_per_upload})")
            raise HTTPException(
                status_code=400,
                detail=f"Too many files. Maximum {settings.max_files_per_upload} files per upload.",
            )

        form = await request.form()
        existing_images = await store.load()
        timestamp = int(time.time() * 1000)
        errors: List[str] = []
        items: List[IngestionItem] = []
        saved_paths: Dict[str, Path] = {}

        for i, file in enumerate(files):
            filename = file.filename or f"image_{i}.jpg"
            metadata = _parse_file_metadata(form.get(f"metadata_{i}"), filename)
            blade, side = derive_blade_and_side(filename, metadata)

            suffix = Path(filename).suffix.lower() or ".jpg"
            stored_name = f"{blade.value}_{side.value}_{timestamp}_{i}_{_UNSAFE_CHARS.sub('_', Path(filename).stem)}{suffix}"
            path = await _save_upload(file, stored_name)

            try:
                bag = await provider.extract(path)
            except MetadataExtractionError as e:
                logger.warning(f"Metadata extraction failed for {filename}: {e}")
                errors.append(f"{filename}: {e}")
                path.unlink(missing_ok=True)
                continue

            saved_paths[f"/uploads/{stored_name}"] = path

            width, height = read_image_dimensions(path)
            items.append(
                IngestionItem(
                    name=filename,
                    bag=bag,
                    width=width,
                    height=height,
                    blade=blade,
                    side=side,
                    manual_distance=metadata.manual_distance if metadata else None,
                    src=f"/uploads/{stored_name}",
                )
            )

        batch: BatchResult = ingest_batch(items, existing_images, timestamp)
        errors.extend(batch.errors)

        accepted = {img.orig_img_src for img in batch.images}
        for src, path in saved_paths.items():
            if src not in accepted:
                path.unlink(missing_ok=True)

        if not batch.images:
            logger.error(f"No images processed successfully: {errors}")
            raise HTTPException(
                status_code=400,
                detail={"error": "No images could be processed successfully", "details": errors},
            )

        all_images = await store.add(batch.images)
        logger.info(
            f"Upload completed: {len(batch.images)}/{len(files)} processed, "
            f"{len(batch.interpolation_log)} interpolated, {len(all_images)} images stored"
        )

        message = f"Successfully processed {len(batch.images)} images"
        if batch.interpolation_log:
            message += f" ({len(batch.interpolation_log)} used interpolated distances)"

        return UploadResponse(
            success=True,
            processed=len(batch.images),
            total_images=len(all_images),
            message=message,
            errors=errors,
            interpolation_log=batch.interpolation_log,
            interpolated_count=len(batch.interpolation_log),
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in turbine image upload: {type(e).__name__}: {str(e)}")
        logger.exception("Full traceback:")
        raise HTTPException(status_code=500, detail=f"Upload failed: {str(e)}")
