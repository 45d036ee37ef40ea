from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from ..core.shortener import Strategy, MAX_CODE_LENGTH


class LinkCreate(BaseModel):
    """Schema for creating a new short link"""
    url: str = Field(..., description="Original URL to shorten", min_length=1, max_length=2048)
    custom_code: Optional[str] = Field(None, description="Custom short code", min_length=1, max_length=MAX_CODE_LENGTH)
    strategy: Optional[Strategy] = Field(None, description="Code generation strategy (defaults to server setting)")
    expires_at: Optional[datetime] = Field(None, description="Absolute expiration time")
    expires_in_days: Optional[int] = Field(None, description="Expire this many days from now", ge=1, le=3650)


class LinkUpdate(BaseModel):
    """Schema for editing a link"""
    url: Optional[str] = Field(None, min_length=1, max_length=2048)
    expires_at: Optional[datetime] = None
    expires_in_days: Optional[int] = Field(None, ge=1, le=3650)
    clear_expiration: bool = Field(False, description="Make the link never expire")


class LinkResponse(BaseModel):
    """Schema for link response"""
    id: int
    short_code: str
    original_url: str
    short_url: str
    is_custom: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
    clicks_count: int
    last_clicked_at: Optional[datetime] = None
    is_expired: bool
    existing: bool = False

    class Config:
        from_attributes = True


class LocationData(BaseModel):
    """Browser geolocation sent with a tracked click"""
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, ge=0)
    permission_granted: bool = False


class TrackRequest(BaseModel):
    """Schema for the click tracking endpoint"""
    location: Optional[LocationData] = None
