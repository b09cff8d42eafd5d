"""
Environment configuration for the rental service.
Uses Pydantic's settings management to handle environment variables
with proper type validation and default values.
"""

import json
from functools import lru_cache
from typing import List, Optional, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Application configuration
    APP_NAME: str = Field(default="Rental Search Service", alias="PROJECT_NAME")
    API_VERSION: str = Field(default="v1", alias="PROJECT_VERSION")
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    CORS_ORIGINS: List[str] = Field(default=["*"], alias="BACKEND_CORS_ORIGINS")

    # Database configuration
    DATABASE_URL: str = "sqlite:///./rentals.db"
    DB_POOL_SIZE: int = 20
    DB_POOL_OVERFLOW: int = 10

    # Redis / cache configuration
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_POOL_SIZE: int = 10
    CACHE_BACKEND: str = "memory"
    CACHE_NAMESPACE: str = "rentals"

    # Geocoding
    GEOCODING_PROVIDER: str = "nominatim"
    GOOGLE_MAPS_API_KEY: Optional[str] = None
    GEOCODING_USER_AGENT: str = "rentals-geocoder/1.0"
    GEOCODING_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_LANGUAGE: str = "en"
    GEOCODE_CACHE_MAX_ENTRIES: int = 10000
    GEOCODE_CACHE_TTL_SECONDS: Optional[int] = None  # no automatic expiry

    # Search
    SEARCH_MAX_WORKERS: int = 8
    SEARCH_GEOCODE_TIMEOUT_SECONDS: float = 5.0
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100
    DEFAULT_SEARCH_RADIUS_KM: float = 10.0

    # Ratings
    RATING_RECOMPUTE_MAX_RETRIES: int = 3

    # Monitoring and logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = False
    SENTRY_DSN: Optional[str] = None

    @field_validator('CORS_ORIGINS', mode='before')
    @classmethod
    def parse_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse CORS_ORIGINS from a comma separated or JSON string"""
        if isinstance(v, str):
            if v.startswith('[') and v.endswith(']'):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator('GEOCODING_PROVIDER')
    @classmethod
    def validate_provider(cls, v: str) -> str:
        v = v.lower()
        if v not in ("nominatim", "google"):
            raise ValueError(f"Unsupported geocoding provider: {v}")
        return v

    @field_validator('CACHE_BACKEND')
    @classmethod
    def validate_cache_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError(f"Unsupported cache backend: {v}")
        return v

    @field_validator(
        'SEARCH_MAX_WORKERS',
        'GEOCODE_CACHE_MAX_ENTRIES',
        'DEFAULT_PAGE_SIZE',
        'MAX_PAGE_SIZE',
        'RATING_RECOMPUTE_MAX_RETRIES',
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    def get_database_url(self) -> str:
        """Get database URL"""
        return self.DATABASE_URL

    def get_redis_url(self) -> str:
        """Get Redis URL"""
        return self.REDIS_URL

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "production"

    def is_development(self) -> bool:
        """Check if running in development environment"""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
