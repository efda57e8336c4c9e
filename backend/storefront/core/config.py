"""
Centralized storefront configuration
"""
import json
from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Storefront settings (environment variables or .env)"""

    # API Settings
    API_TITLE: str = "Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Session and cart orchestration over the commerce backend"

    # Remote commerce backend
    API_BASE_URL: str = "http://localhost:8082/api"

    # Persistent scope (customer credentials + guest cart)
    STOREFRONT_DATA_DIR: str = ".storefront"
    PERSISTENT_STORAGE_FILE: str = "local_storage.json"
    CART_STORAGE_KEY: str = "cart_items"

    # CORS - Can be string (comma-separated) or JSON array
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000,http://localhost:5173"

    LOG_LEVEL: str = "INFO"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    def get_persistent_storage_path(self) -> Path:
        """Path of the JSON file backing the persistent scope"""
        return Path(self.STOREFRONT_DATA_DIR) / self.PERSISTENT_STORAGE_FILE

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
