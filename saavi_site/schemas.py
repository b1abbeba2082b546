"""
Pydantic schemas for request and response data validation.
Defines data structures for API endpoints with automatic validation and serialization.
"""
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, List


class GalleryItemResponse(BaseModel):
    """
    Response schema for gallery item data.
    Image bytes are never included; `image_url` points at them.
    """
    id: int
    title: str
    category: str
    image_url: Optional[str] = None
    content_type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(
        from_attributes=True  # Enable conversion from SQLAlchemy models
    )


class GalleryCategoriesResponse(BaseModel):
    categories: List[str]
    max_items: int


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
    id: int


class LoginRequest(BaseModel):
    """
    Login payload shared by the session and token logins.
    Fields are optional so that missing values produce a 400 with a readable message.
    """
    username: Optional[str] = None
    password: Optional[str] = None


class SessionLoginResponse(BaseModel):
    success: bool
    message: str


class TokenLoginResponse(BaseModel):
    token: str
    message: str


class AuthStatusResponse(BaseModel):
    authenticated: bool


class LogoutResponse(BaseModel):
    success: bool = True


class ContactRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None


class ContactResponse(BaseModel):
    success: bool
    message: str


class HealthResponse(BaseModel):
    status: str
    uptime: float
    database: str
    timestamp: datetime
