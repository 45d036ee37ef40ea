from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel

from .link import LocationData


class ClickRecord(BaseModel):
    """Single retained click"""
    clicked_at: datetime
    ip_address: Optional[str]
    user_agent: Optional[str]
    referer: Optional[str]
    location: Optional[LocationData] = None


class RefererStats(BaseModel):
    """Referer statistics"""
    referer: Optional[str]
    clicks: int
    percentage: float


class LinkStats(BaseModel):
    """Complete statistics for a link"""
    id: int
    short_code: str
    original_url: str
    short_url: str
    is_custom: bool
    created_at: datetime
    expires_at: Optional[datetime]
    is_expired: bool
    clicks_count: int
    last_clicked_at: Optional[datetime]
    total_click_records: int
    clicks_with_location: int
    location_permission_rate: float
    top_referers: List[RefererStats]
    recent_clicks: List[ClickRecord]
