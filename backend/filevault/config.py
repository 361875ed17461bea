"""Application configuration from environment variables."""
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All config comes from env vars or a .env file."""

    DATABASE_URL: str = "sqlite+aiosqlite:///./filevault.db"
    FILE_STORAGE_PATH: str = "./uploads"
    UPLOAD_CHUNK_SIZE: int = 1024 * 1024
    DOWNLOAD_CHUNK_SIZE: int = 64 * 1024

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    CORS_ORIGINS: str = "*"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def storage_path(self) -> Path:
        """Blob store base directory as an absolute, normalized path."""
        return Path(self.FILE_STORAGE_PATH).expanduser().resolve()


settings = Settings()
