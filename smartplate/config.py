# Copyright (c) 2025 Fernando Guerriero Cardoso da Silva.
# SPDX-License-Identifier: MIT
#

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    secret_key: str
    app_env: str = "development"
    log_level: str = "INFO"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    allowed_origins: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 8000

    sendgrid_api_key: str = ""
    mail_sender_email: str = "no-reply@example.com"
    mail_sender_name: str = "SmartPlate Team"

    storage_root: str = "./uploads"
    storage_base_url: str = "/files"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Delay before the role lookup that follows a sign-in event
    role_fetch_delay_seconds: float = 0.0

    geolocation_timeout_seconds: float = 10.0
    geolocation_maximum_age_seconds: float = 60.0
    default_latitude: Optional[float] = None
    default_longitude: Optional[float] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create an instance of Settings to be imported across the application
settings = Settings()
