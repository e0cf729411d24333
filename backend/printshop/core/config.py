from pydantic_settings import BaseSettings
from typing import List
import os


class Settings(BaseSettings):
    env: str = "dev"
    secret_key: str = "change_me_super_secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_minutes: int = 60 * 24 * 30
    database_url: str = "postgresql+psycopg2://printshop:printshop@db:5432/printshop"
    backend_cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    # Object storage for receipts / evidence images
    storage_dir: str = "data/storage"
    public_storage_url: str = "http://localhost:8000/storage"

    # Pricing defaults
    flat_cost_per_gram: float = 20.0  # CLP per gram when an order has no technical data
    default_electricity_cost: float = 50.0  # CLP per kWh

    # Single UPDATE with a zero floor instead of read-modify-write
    atomic_stock_deduction: bool = False

    port: int = int(os.getenv("PORT", "8000"))

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        origins = self.backend_cors_origins
        return [origin.strip() for origin in origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
