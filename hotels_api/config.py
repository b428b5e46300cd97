"""
Configuration management for the FastAPI application.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Hotels API"
    API_VERSION: str = "0.1.0"
    API_DESCRIPTION: str = "Backend API for hotel listings and their picture galleries"

    # CORS Configuration
    # Local development ports of the admin frontend
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]

    # Database Configuration
    # Empty value falls back to an in-memory SQLite database
    DATABASE_URL: str = ""
    AUTO_CREATE_TABLES: bool = True

    # Picture storage
    # STORAGE_ROOT is the public-readable area, pictures live in its PICTURES_DIRECTORY
    STORAGE_ROOT: str = "storage/public"
    PICTURES_DIRECTORY: str = "hotels"
    STORAGE_URL_PREFIX: str = "/storage"

    # Picture validation rules
    PICTURE_MAX_BYTES: int = 5 * 1024 * 1024  # 5 MiB
    PICTURE_MIN_WIDTH: int = 100  # 0 disables the dimension rule
    PICTURE_MIN_HEIGHT: int = 100
    PICTURES_MAX_PER_REQUEST: int = 20

    # Pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings


# Global settings instance
settings = Settings()
