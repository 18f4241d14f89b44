"""
Configuration management for the LexPix backend.
Uses Pydantic Settings for environment variable management.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "LexPix Photography API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Backend API for the LexPix portfolio site and admin dashboard"

    # Public site URL, used when building invitation links
    SITE_URL: str = "http://localhost:5173"

    # CORS Configuration
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
        "http://localhost:8000",
        "http://127.0.0.1:5173",
        "http://127.0.0.1:8080",
        "http://127.0.0.1:8000",
    ]

    # Persistence mode: "local" (key-value store shim) or "remote" (Postgres + Cloudinary)
    BACKEND_MODE: str = "local"

    # Local mode. An empty path keeps everything in memory.
    LOCAL_STORE_PATH: str = ""
    # Roughly what a browser grants to local storage; 0 disables the quota
    LOCAL_STORE_QUOTA_BYTES: int = 5 * 1024 * 1024

    # Remote mode
    DATABASE_URL: str = ""
    AUTO_CREATE_TABLES: bool = False
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Fixed admin credential
    ADMIN_EMAIL: str = "admin@lexpix.com"
    ADMIN_PASSWORD: str = "admin123"
    # When set, the admin password is checked against this bcrypt hash instead
    ADMIN_PASSWORD_HASH: str = ""

    # JWT Configuration
    # SECRET_KEY should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET_KEY: str = "your-secret-key-change-this-in-production-use-openssl-rand-hex-32"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Site behaviour
    REVIEWS_REQUIRE_APPROVAL: bool = False
    INVITE_EXPIRY_DAYS: int = 7
    STORAGE_LIMIT_BYTES: int = 1024 * 1024 * 1024  # 1GB
    LARGE_FILE_BYTES: int = 10 * 1024 * 1024  # 10MB
    CONVERT_UPLOADS_TO_WEBP: bool = True

    RATE_LIMIT_ENABLED: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    @property
    def use_remote_backend(self) -> bool:
        return self.BACKEND_MODE.lower() == "remote"


# Global settings instance
settings = Settings()
