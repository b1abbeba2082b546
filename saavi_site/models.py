"""
SQLAlchemy models for the application.
All database models inherit from Base (declarative base).
"""
from sqlalchemy import Column, Integer, String, DateTime, LargeBinary, Index
from sqlalchemy.orm import deferred
from sqlalchemy.sql import func
from saavi_site.database import Base


GALLERY_CATEGORIES = (
    "CCTV Installation",
    "CCTV Maintenance",
    "LED Board Installation",
    "Completed Projects",
)


class GalleryItem(Base):
    """
    One published photo with its metadata.
    `storage` records which backend owns the image so it can be cleaned up later.
    """
    __tablename__ = "gallery_items"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(100), nullable=False)
    category = Column(String(64), nullable=False, index=True)
    image_url = Column(String, nullable=True)
    storage = Column(String(32), nullable=False, default="disk")
    storage_key = Column(String, nullable=True)
    # Only loaded when the image itself is served
    image_data = deferred(Column(LargeBinary, nullable=True))
    content_type = Column(String(64), nullable=True)
    description = Column(String(300), nullable=True)
    location = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_gallery_items_category_created_at", "category", "created_at"),
    )


class AdminUser(Base):
    """The single admin account used by the token login."""
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    jti = Column(String(64), primary_key=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
