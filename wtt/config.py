from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    # Storage
    data_dir: Path = Path("data")
    data_file: str = "data.json"
    seed_file: str = "seed.json"
    persistent: bool = True

    # Resource service
    resource_service_url: Optional[str] = None
    resource_service_timeout: float = 10.0

    # Audit
    default_principal: str = "DUMMY_USER"

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="WTT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def data_path(self) -> Path:
        return self.data_dir / self.data_file

    @property
    def seed_path(self) -> Path:
        return self.data_dir / self.seed_file


settings = Settings()
