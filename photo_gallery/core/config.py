from pydantic_settings import BaseSettings
from typing import Optional, List


class Settings(BaseSettings):
    # Database Configuration - supports either SQLite or PostgreSQL
    SQLITE_DATABASE_URL: Optional[str] = None

    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None
    POSTGRES_HOST: Optional[str] = None
    POSTGRES_PORT: Optional[int] = None

    @property
    def DATABASE_URL(self) -> str:
        if self.SQLITE_DATABASE_URL:
            return self.SQLITE_DATABASE_URL
        elif all([self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_DB, self.POSTGRES_HOST, self.POSTGRES_PORT]):
            return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        else:
            raise ValueError("Database configuration is missing. Please set either SQLITE_DATABASE_URL or all POSTGRES_* variables in your .env file.")

    # Store synchronization (local -> remote)
    SYNC_SOURCE_DATABASE_URL: Optional[str] = None
    SYNC_DESTINATION_DATABASE_URL: Optional[str] = None
    SYNC_PROGRESS_EVERY: int = 10  # log a progress line every N rows

    # Single upload endpoint
    UPLOAD_MAX_FILE_SIZE_MB: int = 10
    UPLOAD_MAX_DIMENSION: int = 2000
    UPLOAD_ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp"]

    # Bulk ingestion (HTTP endpoint and script)
    BULK_MAX_FILE_SIZE_MB: int = 50
    BULK_MAX_WIDTH: int = 1920
    BULK_MAX_HEIGHT: int = 1920
    BULK_API_ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"]
    BULK_SCRIPT_ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".tiff"]
    BULK_DEFAULT_FOLDER: str = "D:/photos"
    BULK_PROGRESS_BATCH_SIZE: int = 5

    # Re-encoding
    JPEG_QUALITY: int = 85

    # API Configuration
    CORS_ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    @property
    def UPLOAD_MAX_FILE_SIZE(self) -> int:
        return self.UPLOAD_MAX_FILE_SIZE_MB * 1024 * 1024

    @property
    def BULK_MAX_FILE_SIZE(self) -> int:
        return self.BULK_MAX_FILE_SIZE_MB * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

settings = Settings()
