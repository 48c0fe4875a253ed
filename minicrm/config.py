from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Mini CRM"
    APP_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: str = "http://localhost:5173"

    DATABASE_URL: str = "sqlite+aiosqlite:///./minicrm.db"

    JWT_SECRET_KEY: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Public storage backend (served under /storage)
    STORAGE_ROOT: str = "./storage/public"
    LOGO_DIRECTORY: str = "logos"
    LOGO_MAX_SIZE_KB: int = 2048
    LOGO_ALLOWED_TYPES: str = "jpeg,png,jpg,gif"
    LOGO_MIN_DIMENSION: int = 100
    LOGO_MAX_DIMENSION: int = 2000
    LOGO_RESIZE_MAX: int = 800
    LOGO_QUALITY: int = 85
    OPTIMIZE_IMAGES: bool = True

    MAX_REQUEST_SIZE_MB: int = 8

    DEFAULT_PER_PAGE: int = 10
    MAX_PER_PAGE: int = 100
    PER_PAGE_OPTIONS: str = "10,25,50,100"

    # "log" writes mail to the application log, "smtp" delivers it
    MAIL_TRANSPORT: str = "log"
    MAIL_FROM_ADDRESS: str = "noreply@minicrm.local"
    MAIL_FROM_NAME: str = "Mini CRM"
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True

    EVENT_MAX_ATTEMPTS: int = 3
    EVENT_RETRY_DELAY_SECONDS: float = 1.0

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _fix_database_url(self):
        """Hosted Postgres URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        if self.DATABASE_URL.startswith("postgresql://"):
            self.DATABASE_URL = self.DATABASE_URL.replace(
                "postgresql://", "postgresql+asyncpg://", 1,
            )
        return self

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def logo_allowed_types(self) -> list[str]:
        return [t.strip().lower() for t in self.LOGO_ALLOWED_TYPES.split(",") if t.strip()]

    @property
    def per_page_options(self) -> list[int]:
        return [int(o) for o in self.PER_PAGE_OPTIONS.split(",") if o.strip()]


settings = Settings()
