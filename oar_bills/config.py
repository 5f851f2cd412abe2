"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./oar.db"

    # Service
    service_name: str = "oar-bills"
    log_level: str = "INFO"

    # Billing
    currency: str = "PLN"
    autopay_note: str = "Logged by Oar"
    run_startup_catch_up: bool = True

    # Forecast
    forecast_max_months: int = 24
    estimation_sample_size: int = 3  # Payments averaged for variable bills


settings = Settings()
