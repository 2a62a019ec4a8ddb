from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Database (empty string = store not configured)
    database_url: str = Field(default="sqlite:///./powerswitch.db")

    # Telegram bot
    telegram_bot_token: str = Field(default="")
    telegram_chat_id: str = Field(default="")
    telegram_api_url: str = Field(default="https://api.telegram.org")
    telegram_timeout_seconds: float = Field(default=10.0)

    # User-settable values; these are only the defaults until saved via /settings/
    power_limit: float | None = Field(default=None)  # watts
    data_source_id: str = Field(default="")

    # Tariff used when a reading does not specify one
    default_cost_per_unit: float = Field(default=4.50)

    # Calendar used for reading_date defaults and daily summaries
    timezone: str = Field(default="UTC")

    # Periodic jobs
    scheduler_enabled: bool = Field(default=True)
    refresh_interval_seconds: int = Field(default=5)
    daily_summary_hour: int = Field(default=21)
    weekly_report_hour: int = Field(default=9)

    # Dashboard polling interval (seconds) - sent to frontend
    dashboard_poll_interval: int = Field(default=30)

    log_level: str = Field(default="INFO")

    # CORS
    cors_origins: str = Field(default="http://localhost:3000,http://localhost:5173")

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def store_configured(self) -> bool:
        return bool(self.database_url.strip())

    @property
    def telegram_configured(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


settings = Settings()
