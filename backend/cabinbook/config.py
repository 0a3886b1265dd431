# backend/cabinbook/config.py

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]  # repository root


class Settings(BaseSettings):
    database_url: str = "sqlite:///./data/cabinbook.db"
    redis_url: Optional[str] = None

    log_level: str = "INFO"

    horizon_days: int = 90
    service_fee_rate: float = 0.10
    events_queue: str = "events:p2p"

    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_prefix="CABINBOOK_",
        extra="ignore",
    )

    @property
    def resolved_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///./"):
            # Relative sqlite paths are anchored at the repository root
            relative_path = url.replace("sqlite:///./", "")
            absolute_path = BASE_DIR / relative_path
            return f"sqlite:///{absolute_path}"
        return url


settings = Settings()
