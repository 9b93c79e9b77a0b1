from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import uvicorn
import logging

from core.config import settings
from routers import turbine, upload
from services.image_store import TurbineImageStore
from services.measurement import MeasurementBook

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info("Starting up BladeGSD Backend...")
    Path(settings.turbine_data_file).parent.mkdir(parents=True, exist_ok=True)
    app.state.image_store = TurbineImageStore(settings.turbine_data_file)
    app.state.measurement_book = MeasurementBook()
    logger.info(f"Image data file: {settings.turbine_data_file}, uploads: {settings.upload_dir}")

    yield

    # Shutdown
    logger.info("Shutting down BladeGSD Backend...")

app = FastAPI(
    title=settings.app_name,
    description="GSD inference and blade geometry for wind turbine inspection imagery",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(upload.router, prefix="/api/v1")
app.include_router(turbine.router, prefix="/api/v1")

app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")


@app.get("/health")
async def health_check():
    return {"status": "healthy", "service": "bladegsd-backend"}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
