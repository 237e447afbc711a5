# catalog/config.py
from pathlib import Path
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    ENV: str = "development"
    PORT: int = 5000

    DATA_DIR: Path = Path("data")  # where the products file lives
    PRODUCTS_FILE: str = "products.json"  # .json, .csv or .xlsx
    PERSISTENCE_ENABLED: bool = True

    UPLOADS_DIR: Path = Path("uploads")
    UPLOADS_URL_PREFIX: str = "/uploads/"
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

    # public host used to build absolute image URLs; falls back to localhost:PORT
    PUBLIC_BASE_URL: Optional[str] = None
    # set to an empty string to return "" for products without an image
    PLACEHOLDER_IMAGE_URL: str = "https://via.placeholder.com/300x300/4A5568/FFFFFF?text=No+Image"

    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"

    # Example .env:
    # DATA_DIR=./data
    # PRODUCTS_FILE=products.csv
    # PUBLIC_BASE_URL=https://api.example.com

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def products_path(self) -> Path:
        return Path(self.DATA_DIR) / self.PRODUCTS_FILE

    @property
    def public_base_url(self) -> str:
        base = self.PUBLIC_BASE_URL or f"http://localhost:{self.PORT}"
        return base.rstrip("/")

    @property
    def cors_origins(self) -> List[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
