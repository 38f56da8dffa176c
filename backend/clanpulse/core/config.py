from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "ClanPulse API"
    api_prefix: str = "/api/v1"
    debug: bool = False

    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60

    coc_api_base_url: str = "https://api.clashofclans.com/v1"
    coc_api_token: str = ""
    coc_api_timeout_seconds: float = 15.0
    war_log_limit: int = 20

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
