from typing import List
from decouple import config, Csv


class Settings:
    # --- Database ---
    DATABASE_URL: str = config("DATABASE_URL", default="sqlite:///portfolio.db")

    # --- Ledger ---
    BASE_CURRENCY: str = config("BASE_CURRENCY", default="USD").upper()

    # --- Quote providers ---
    DEFAULT_PROVIDER: str = config("DEFAULT_PROVIDER", default="fmp")
    PROVIDER_PRIORITY: List[str] = config(
        "PROVIDER_PRIORITY",
        default="fmp,alpha_vantage,marketstack,yahoo",
        cast=Csv(),
    )
    FMP_API_KEY: str = config("FMP_API_KEY", default="")
    ALPHA_VANTAGE_API_KEY: str = config("ALPHA_VANTAGE_API_KEY", default="")
    MARKETSTACK_API_KEY: str = config("MARKETSTACK_API_KEY", default="")
    HTTP_TIMEOUT: float = config("HTTP_TIMEOUT", default=30.0, cast=float)

    # --- Redis (Celery broker) ---
    REDIS_HOST: str = config("REDIS_HOST", default="localhost")
    REDIS_PORT: int = config("REDIS_PORT", default=6379, cast=int)

    # --- Celery ---
    CELERY_BROKER_URL: str = config(
        "CELERY_BROKER_URL",
        default=f"redis://{REDIS_HOST}:{REDIS_PORT}/0"
    )

    CELERY_RESULT_BACKEND: str = config(
        "CELERY_RESULT_BACKEND",
        default=f"redis://{REDIS_HOST}:{REDIS_PORT}/1"
    )

    CELERY_TIMEZONE: str = config("CELERY_TIMEZONE", default="UTC")
    CELERY_ENABLE_UTC: bool = config("CELERY_ENABLE_UTC", default=True, cast=bool)

    CELERY_BEAT_ENABLED: bool = config("CELERY_BEAT_ENABLED", default=True, cast=bool)
    REFRESH_CRON_HOUR: str = config("REFRESH_CRON_HOUR", default="0")
    REFRESH_CRON_MINUTE: str = config("REFRESH_CRON_MINUTE", default="10")

    CELERY_WORKER_CONCURRENCY: int = config(
        "CELERY_WORKER_CONCURRENCY", default=1, cast=int
    )

    # --- Logging & Debug ---
    SQL_ECHO: bool = config("SQL_ECHO", default=False, cast=bool)
    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO").upper()
    LOG_DIR: str = config("LOG_DIR", default="logs")
    SQL_LOG_LEVEL: str = config("SQL_LOG_LEVEL", default="WARNING").upper()
    UVICORN_LOG_LEVEL: str = config("UVICORN_LOG_LEVEL", default="info").upper()
    DEBUG: bool = config("DEBUG", default=False, cast=bool)

    # --- CORS ---
    CORS_ORIGINS: List[str] = config(
        "CORS_ORIGINS",
        default="http://localhost:3000,http://127.0.0.1:3000",
        cast=Csv(),
    )


settings = Settings()
