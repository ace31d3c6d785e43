"""Application configuration settings."""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./fleetledger.db"

    # CORS
    cors_origins: str = "http://localhost:3000"  # Default for local development

    # Debug
    debug: bool = True

    # Uploads
    max_upload_mb: int = 20

    # Fleet roster
    fleet_header_scan_rows: int = 100  # Rows scanned when looking for the roster header

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

        # Accept both trailing slash variants
        expanded_origins = []
        for origin in origins:
            expanded_origins.append(origin)
            if origin.endswith("/"):
                expanded_origins.append(origin.rstrip("/"))
            else:
                expanded_origins.append(origin + "/")

        # Remove duplicates while preserving order
        seen = set()
        unique_origins = []
        for origin in expanded_origins:
            if origin not in seen:
                seen.add(origin)
                unique_origins.append(origin)

        return unique_origins

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
