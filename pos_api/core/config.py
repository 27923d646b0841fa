from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from decimal import Decimal
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'pos_user'
    POSTGRES_PASSWORD: str = 'pos_pass'
    POSTGRES_DB: str = 'pos_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None  # Sobrescribe la URL armada con POSTGRES_*

    # Redis settings (broker de Celery)
    REDIS_HOST: str = 'redis'
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: Optional[str] = None

    # MinIO settings
    MINIO_HOST: str = 'minio'
    MINIO_PORT: int = 9000
    MINIO_ACCESS_KEY: str = 'minioadmin'
    MINIO_SECRET_KEY: str = 'minioadmin'
    MINIO_BUCKET_NAME: str = 'facturas-pos'
    MINIO_USE_SSL: bool = False
    MINIO_INVOICE_PREFIX: str = 'facturas'

    # Facturas
    INVOICE_STORAGE: str = 'local'  # local | minio
    INVOICE_DIR: str = 'facturas'
    LOGO_PATH: str = 'logos/logo.png'
    QR_PATH: str = 'logos/qr.png'

    # JWT settings
    APP_SECRET_STRING: str = 'your-super-secret-key-here-change-in-production-2024'
    ALGORITHM: str = 'HS256'
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 12 * 60

    # Negocio
    COMPANY_NAME: str = 'TECNOMART'
    COMPANY_HEADER_LINES: list = [
        "Tecnología avanzada en Informática",
        "Ubicados en la Col. Hato de Enmedio - Plazita - Sector #6",
        "Edificio 2do nivel - frente a SUPERCARNES",
        "Tel: 9841-1640 • tecnomart67@gmail.com",
    ]
    CURRENCY_NAME: str = 'LEMPIRAS'
    CURRENCY_SYMBOL: str = 'L.'
    TIMEZONE: str = 'America/Tegucigalpa'
    CASH_DRAWER_BASE_FLOAT: Decimal = Decimal("5000")
    SALES_TARGET: Decimal = Decimal("1500")
    ALLOW_NEGATIVE_STOCK: bool = True
    ALERT_DEDUPLICATE: bool = False

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def redis_url(self) -> str:
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @property
    def minio_endpoint(self) -> str:
        return f"{self.MINIO_HOST}:{self.MINIO_PORT}"

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", "MINIO_USE_SSL", "ALLOW_NEGATIVE_STOCK", "ALERT_DEDUPLICATE", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

settings = Settings()
