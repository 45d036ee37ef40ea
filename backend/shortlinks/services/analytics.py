from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Click, Link


def build_short_url(code: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/{code}"


def get_top_referers(db: Session, link_id: int, limit: int = 10) -> List[dict]:
    """Get top referer sources among retained clicks"""
    results = db.query(
        Click.referer,
        func.count(Click.id).label('clicks')
    ).filter(
        Click.link_id == link_id
    ).group_by(
        Click.referer
    ).order_by(
        func.count(Click.id).desc(),
        Click.referer
    ).limit(limit).all()

    total = sum(row.clicks for row in results)

    return [
        {
            "referer": row.referer if row.referer else "Direct",
            "clicks": row.clicks,
            "percentage": round(row.clicks / total * 100, 1) if total > 0 else 0
        }
        for row in results
    ]


def get_recent_clicks(db: Session, link_id: int, limit: int) -> List[dict]:
    """Newest clicks first"""
    clicks = db.query(Click).filter(
        Click.link_id == link_id
    ).order_by(Click.id.desc()).limit(limit).all()

    return [
        {
            "clicked_at": click.clicked_at,
            "ip_address": click.ip_address,
            "user_agent": click.user_agent,
            "referer": click.referer,
            "location": {
                "latitude": click.latitude,
                "longitude": click.longitude,
                "accuracy": click.accuracy,
                "permission_granted": True
            } if click.location_permission_granted else None
        }
        for click in clicks
    ]


def get_link_stats(db: Session, link: Link) -> dict:
    """Get complete statistics for a link, expired or not"""
    total_records = db.query(func.count(Click.id)).filter(
        Click.link_id == link.id
    ).scalar() or 0

    with_location = db.query(func.count(Click.id)).filter(
        Click.link_id == link.id,
        Click.location_permission_granted == True  # noqa: E712
    ).scalar() or 0

    permission_rate = round(with_location / total_records * 100, 2) if total_records > 0 else 0

    return {
        "id": link.id,
        "short_code": link.short_code,
        "original_url": link.original_url,
        "short_url": build_short_url(link.short_code),
        "is_custom": link.is_custom,
        "created_at": link.created_at,
        "expires_at": link.expires_at,
        "is_expired": link.is_expired,
        "clicks_count": link.clicks_count,
        "last_clicked_at": link.last_clicked_at,
        "total_click_records": total_records,
        "clicks_with_location": with_location,
        "location_permission_rate": permission_rate,
        "top_referers": get_top_referers(db, link.id),
        "recent_clicks": get_recent_clicks(db, link.id, settings.CLICK_RETENTION)
    }
