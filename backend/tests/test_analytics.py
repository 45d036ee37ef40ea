"""Tests for link statistics."""

from datetime import timedelta

from shortlinks.models.link import utcnow
from shortlinks.schemas.link import LocationData
from shortlinks.services import links as link_service
from shortlinks.services.analytics import build_short_url, get_link_stats, get_top_referers


URL = "https://example.com/landing"


def test_stats_for_link_without_clicks(db_session):
    link, _ = link_service.create_link(db_session, URL, custom_code="empty")

    stats = get_link_stats(db_session, link)

    assert stats["short_code"] == "empty"
    assert stats["short_url"] == build_short_url("empty")
    assert stats["clicks_count"] == 0
    assert stats["total_click_records"] == 0
    assert stats["location_permission_rate"] == 0
    assert stats["top_referers"] == []
    assert stats["recent_clicks"] == []
    assert stats["is_expired"] is False


def test_stats_aggregate_clicks(db_session):
    link, _ = link_service.create_link(db_session, URL)
    granted = LocationData(latitude=48.85, longitude=2.35, accuracy=10, permission_granted=True)

    link_service.record_click(db_session, link, referer="https://news.example.com", location=granted)
    link_service.record_click(db_session, link, referer="https://news.example.com")
    link_service.record_click(db_session, link)

    stats = get_link_stats(db_session, link)

    assert stats["clicks_count"] == 3
    assert stats["total_click_records"] == 3
    assert stats["clicks_with_location"] == 1
    assert stats["location_permission_rate"] == 33.33
    assert stats["top_referers"][0] == {
        "referer": "https://news.example.com",
        "clicks": 2,
        "percentage": 66.7
    }
    assert stats["top_referers"][1]["referer"] == "Direct"

    recent = stats["recent_clicks"]
    assert len(recent) == 3
    # Newest first: the click with location was recorded first
    assert recent[0]["location"] is None
    assert recent[-1]["location"] == {
        "latitude": 48.85,
        "longitude": 2.35,
        "accuracy": 10,
        "permission_granted": True
    }


def test_stats_available_for_expired_link(db_session):
    link, _ = link_service.create_link(db_session, URL)
    link_service.record_click(db_session, link)
    link.expires_at = utcnow() - timedelta(seconds=1)
    db_session.commit()

    stats = get_link_stats(db_session, link)

    assert stats["is_expired"] is True
    assert stats["total_click_records"] == 1


def test_top_referers_limit(db_session):
    link, _ = link_service.create_link(db_session, URL)
    for index in range(5):
        link_service.record_click(db_session, link, referer=f"https://ref{index}.example.com")

    assert len(get_top_referers(db_session, link.id, limit=3)) == 3
