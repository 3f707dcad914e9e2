from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'gesfer_user'
    POSTGRES_PASSWORD: str = 'gesfer_pass'
    POSTGRES_DB: str = 'gesfer_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432

    # URL completa (tiene prioridad sobre POSTGRES_*), p.ej. sqlite para tests
    DATABASE_URL: Optional[str] = None

    # Albaranes
    MONEY_DECIMALS: int = 4
    STOCK_LOCK_TIMEOUT_MS: int = 5000

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

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

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("MONEY_DECIMALS")
    @classmethod
    def fixed_money_precision(cls, v):
        # Las columnas Numeric(18, 4) no admiten otra precisión
        if v != 4:
            raise ValueError("MONEY_DECIMALS debe ser 4")
        return v

settings = Settings()
