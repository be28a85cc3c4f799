from __future__ import annotations

import os
from dataclasses import dataclass, field


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    app_env: str = os.getenv("APP_ENV", "dev")
    app_host: str = os.getenv("APP_HOST", "0.0.0.0")
    app_port: int = int(os.getenv("APP_PORT", "8000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    metadata_db_url: str = os.getenv("METADATA_DB_URL", "sqlite:///./metadata.db")
    memory_provider: str = os.getenv("MEMORY_PROVIDER", "sql")

    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _split_csv(
            os.getenv(
                "CORS_ORIGINS",
                "https://chatgpt.com,https://chat.openai.com,http://localhost:5173,http://localhost:3000",
            )
        )
    )

    google_ads_client_id: str = os.getenv("GOOGLE_ADS_CLIENT_ID", "")
    google_ads_client_secret: str = os.getenv("GOOGLE_ADS_CLIENT_SECRET", "")
    google_ads_developer_token: str = os.getenv("GOOGLE_ADS_DEVELOPER_TOKEN", "")
    google_ads_refresh_token: str = os.getenv("GOOGLE_ADS_REFRESH_TOKEN", "")
    google_ads_login_customer_id: str = os.getenv("GOOGLE_ADS_LOGIN_CUSTOMER_ID", "")
    google_ads_api_version: str = os.getenv("GOOGLE_ADS_API_VERSION", "v17")
    google_ads_timeout: int = int(os.getenv("GOOGLE_ADS_TIMEOUT", "60"))


settings = Settings()
