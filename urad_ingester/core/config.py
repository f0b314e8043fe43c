from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="URAD_", env_file=".env", extra="ignore")

    app_name: str = "uRad Ingester"

    # Device
    device_url: str = "http://192.168.2.106/j"
    fetch_timeout_seconds: float = Field(default=3.0, gt=0)

    # Sampling
    poll_interval_seconds: float = Field(default=1.0, gt=0)

    # Inbound HTTP
    bind_host: str = "127.0.0.1"
    bind_port: int = Field(default=8753, ge=0, le=65535)

    # Service mode: should match the name registered with the supervisor
    service_name: str = "urad_ingester"

    # Logging
    log_level: str = "INFO"
    log_file: str = "urad_ingester.log"   # "" disables the file handler


settings = Settings()
