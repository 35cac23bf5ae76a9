"""Storefront Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    # Application
    app_name: str = "Marketplace Storefront"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Marketplace backend
    api_base_url: str = "http://localhost:5050/api"
    request_timeout: float = 30.0

    # Device-local storage file (None keeps everything in memory)
    storage_path: Optional[str] = None

    # Payment simulation
    payment_processing_delay: float = 2.0

    # Invoices
    # Directory that keeps a copy of every downloaded invoice (None disables)
    invoice_output_dir: Optional[str] = None
    company_name: str = "Marketplace CR S.A."
    company_legal_id: str = "3-101-123456"
    company_location: str = "San José, Costa Rica"
    company_phone: str = "+506 2234-5678"
    company_email: str = "info@marketplace-cr.com"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def storage_persistent(self) -> bool:
        """Check if local storage is backed by a file"""
        return bool(self.storage_path)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
