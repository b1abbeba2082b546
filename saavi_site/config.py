"""
Configuration management for the Saavi Lite site.
Uses Pydantic Settings for environment variable management.
"""
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Configuration
    API_TITLE: str = "Saavi Lite API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Backend for the Saavi Lite website, admin gallery and contact form"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]

    # Database Configuration
    # MONGO_URI / MONGODB_URI are accepted for compatibility with older deployments,
    # but the value must be an SQLAlchemy async URL
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./saavi_lite.db",
        validation_alias=AliasChoices("DATABASE_URL", "MONGO_URI", "MONGODB_URI"),
    )

    # Session login (plaintext pair, compared in constant time)
    SESSION_SECRET: str = "change-this-session-secret"
    SESSION_MAX_AGE: int = 24 * 60 * 60
    ADMIN_USERNAME: str = ""
    ADMIN_PASSWORD: str = ""

    # JWT Configuration
    # JWT_SECRET should be a long random string (e.g., generated with: openssl rand -hex 32)
    JWT_SECRET: str = "change-this-jwt-secret-use-openssl-rand-hex-32"
    JWT_EXPIRE_HOURS: int = 24

    # Contact form mail relay
    EMAIL_USER: str = ""
    EMAIL_PASS: str = ""
    CONTACT_RECIPIENT: str = ""
    CONTACT_FROM_NAME: str = "Saavi Lite Website"
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587

    # Static site and uploads
    PUBLIC_DIR: str = "public"

    # Gallery
    # One of: disk, database, placeholder, cloudinary
    IMAGE_STORAGE: str = "disk"
    GALLERY_MAX_ITEMS: int = 30
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    CONVERT_UPLOADS_TO_WEBP: bool = False

    # Cloudinary Configuration (IMAGE_STORAGE=cloudinary)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_LOGIN: str = "5/minute"
    RATE_LIMIT_UPLOAD: str = "60/hour"
    RATE_LIMIT_CONTACT: str = "10/hour"

    # e.g. "www.saavilite.in"; requests for the bare domain are redirected there
    CANONICAL_HOST: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings
        populate_by_name = True

    @property
    def contact_recipient(self) -> str:
        return self.CONTACT_RECIPIENT or self.EMAIL_USER


# Global settings instance
settings = Settings()
