from pydantic_settings import BaseSettings
from typing import List, Optional
from datetime import timedelta


class Settings(BaseSettings):
    ENV: str = "development"
    SECRET_KEY: str = "change-me-in-production"
    DATABASE_URL: str = "sqlite:////data/sqlite.db"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:8080"

    # JWT
    JWT_ACCESS_EXPIRES_DAYS: int = 7

    # Uploads
    UPLOAD_DIR: str = "/data/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"

    # Page gate
    LOGIN_PATH: str = "/auth/login"

    # Supplier connection tester
    SUPPLIER_TEST_TIMEOUT: float = 10.0

    # Admin seed
    ADMIN_EMAIL: Optional[str] = "admin@uniqverse.com"
    ADMIN_NAME: Optional[str] = "Admin"
    ADMIN_PASSWORD: Optional[str] = None

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def jwt_expires_delta(self) -> timedelta:
        return timedelta(days=self.JWT_ACCESS_EXPIRES_DAYS)

    class Config:
        env_file = ".env"


settings = Settings()
