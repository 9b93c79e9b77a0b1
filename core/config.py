from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List

class Settings(BaseSettings):
    # App Configuration
    app_name: str = "BladeGSD Backend"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"
    
    # CORS Configuration
    allowed_origins: List[str] = [
        "http://localhost:3000", 
        "http://localhost:3001", 
        "http://127.0.0.1:3000",
        "http://127.0.0.1:3001"
    ]
    
    # File Storage
    upload_dir: str = "./uploads"
    turbine_data_file: str = "./data/turbine-images.json"
    max_files_per_upload: int = 50
    
    # Metadata Extraction
    exiftool_command: str = "exiftool"
    exiftool_timeout_seconds: float = 30.0
    
    # Fallback image dimensions (DJI M3E wide camera)
    default_image_width: int = 5280
    default_image_height: int = 3956
    
    # Blade display / measurement
    blade_pixels_per_meter: float = 3.0
    min_measurement_pixels: float = 2.0
    
    # Pydantic v2 configuration
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow"  # Allow extra fields from environment
    )

# Create global settings instance
settings = Settings()
