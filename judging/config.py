from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    API_URL: str = "http://localhost:8000/api"
    REQUEST_TIMEOUT: float = 30.0
    SESSION_FILE: Path = Path("~/.judging/session.json")

    model_config = SettingsConfigDict(
        env_prefix="JUDGING_",
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
