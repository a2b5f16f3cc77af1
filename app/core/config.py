# app/core/config.py
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings, read from the environment and .env"""
    APP_NAME: str = "Project Task Manager API"
    VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: Optional[str] = None
    DB_DIALECT: str = "mysql+pymysql"
    DB_HOST: Optional[str] = None
    DB_PORT: int = 3306
    DB_NAME: str = "project_manager"
    DB_USER: str = "root"
    DB_PASS: str = ""
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Cache
    CACHE_BACKEND: str = "memory"  # 'memory' or 'redis'
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL: int = 600
    CACHE_SWEEP_INTERVAL: int = 60

    # GitHub
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: Optional[str] = None
    GITHUB_TIMEOUT: float = 15.0
    GITHUB_PER_PAGE: int = 5

    CORS_ORIGINS: str = "*"

    class Config:
        env_file = ".env"
        extra = "ignore"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST:
            return (
                f"{self.DB_DIALECT}://{self.DB_USER}:{self.DB_PASS}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return "sqlite:///./project_manager.db"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
