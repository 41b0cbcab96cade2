"""
Simple-FM - Configuration Management with pydantic-settings

Provides validated, type-safe configuration from environment variables.
All settings can be overridden via environment variables or .env file.
"""
from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings with validation.

    Environment variables take precedence over .env file values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # ===================
    # Application Settings
    # ===================
    PROJECT_NAME: str = "Simple-FM"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    ENVIRONMENT: str = Field(default="development", description="deployment environment")
    HOST: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    PORT: int = Field(default=3000, description="HTTP port")

    # ===================
    # Database Settings
    # ===================
    DB_HOST: str = Field(default="localhost", description="PostgreSQL host")
    DB_PORT: int = Field(default=5432, description="PostgreSQL port")
    DB_NAME: str = Field(default="simple-fm", description="Database name")
    DB_USER: str = Field(default="filament", description="Database user")
    DB_PASSWORD: Optional[str] = Field(default=None, description="Database password")
    DATABASE_URL: Optional[str] = Field(default=None, description="Full database URL (overrides other DB_ settings)")
    POSTGRES_URL: Optional[str] = Field(default=None, description="Connection string used by the compose setup")
    DB_CREATE_TABLES: bool = Field(default=True, description="Create missing tables on startup")
    DB_POOL_RECYCLE: int = Field(default=3600, description="Recycle pooled connections after N seconds")
    DB_ECHO: bool = Field(default=False, description="Log every SQL statement")

    @field_validator("POSTGRES_URL", "DATABASE_URL", mode="before")
    @classmethod
    def empty_url_is_none(cls, v):
        """Treat blank connection strings as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def database_url(self) -> str:
        """Build database URL from components or use explicit URL."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if self.POSTGRES_URL:
            # postgres:// is what docker images hand out, SQLAlchemy wants a dialect name
            if self.POSTGRES_URL.startswith("postgres://"):
                return "postgresql+psycopg2://" + self.POSTGRES_URL[len("postgres://"):]
            return self.POSTGRES_URL

        credentials = self.DB_USER
        if self.DB_PASSWORD:
            credentials = f"{self.DB_USER}:{self.DB_PASSWORD}"
        return f"postgresql+psycopg2://{credentials}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # ===================
    # Inventory Defaults
    # ===================
    DEFAULT_SPOOL_WEIGHT_G: int = Field(default=200, ge=0, description="Tare weight prefilled on new spools")
    DEFAULT_DENSITY: float = Field(default=1.24, gt=0, description="Density prefilled on new profiles (g/cm3)")
    DEFAULT_DIAMETER: float = Field(default=1.75, gt=0, description="Diameter prefilled on new profiles (mm)")
    DEGRADE_READS_TO_EMPTY: bool = Field(
        default=False,
        description="Return empty listings instead of an error page when the database is unreachable"
    )

    # ===================
    # Logging Settings
    # ===================
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format: json or text")
    LOG_FILE: Optional[str] = Field(default=None, description="Log file path (optional)")
    AUDIT_LOG_FILE: Optional[str] = Field(default="./logs/audit.log", description="Audit log file path")

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        if v.lower() not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.ENVIRONMENT.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are only loaded once per process.
    """
    return Settings()


settings = get_settings()
