from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings; every field can be overridden by the upper-case env var."""

    app_name: str = "EduCenter ERP"
    api_version: str = "1.0.0"
    environment: str = "development"

    secret_key: str = "CHANGE_ME"
    access_token_expire_minutes: int = Field(default=30, gt=0)

    database_url: str = "sqlite:///./educenter.db"
    default_timezone: str = "Asia/Ho_Chi_Minh"

    log_level: str = "INFO"
    # Unset means JSON outside development
    log_json: Optional[bool] = None

    # Comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def json_logs(self) -> bool:
        if self.log_json is None:
            return self.environment != "development"
        return self.log_json

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
