"""API tests for the FastAPI application."""

import pytest

from shortlinks.api.links import limiter
from shortlinks.core.base62 import is_valid_code


URL = "https://example.com/some/very/long/path"


def _shorten(client, **payload):
    payload.setdefault("url", URL)
    return client.post("/api/url/shorten", json=payload)


# -------------------------------
# Service endpoints
# -------------------------------

def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "shortlinks"}


def test_version(client):
    data = client.get("/version").json()
    assert data["name"] == "shortlinks"
    assert data["version"] == "1.0.0"
    assert "environment" in data


# -------------------------------
# Shorten
# -------------------------------

def test_shorten_creates_link(client):
    response = _shorten(client)

    assert response.status_code == 201
    data = response.json()
    assert len(data["short_code"]) == 7
    assert is_valid_code(data["short_code"])
    assert data["original_url"] == URL
    assert data["short_url"] == f"http://short.test/{data['short_code']}"
    assert data["is_custom"] is False
    assert data["existing"] is False
    assert data["clicks_count"] == 0
    assert data["expires_at"] is None


def test_shorten_same_url_returns_existing(client):
    first = _shorten(client).json()
    response = _shorten(client)

    assert response.status_code == 200
    assert response.json()["short_code"] == first["short_code"]
    assert response.json()["existing"] is True


def test_shorten_strips_whitespace(client):
    response = _shorten(client, url=f"  {URL}  ")
    assert response.json()["original_url"] == URL


def test_shorten_with_custom_code(client):
    response = _shorten(client, custom_code="launch-day_1")

    assert response.status_code == 201
    assert response.json()["short_code"] == "launch-day_1"
    assert response.json()["is_custom"] is True


def test_shorten_custom_code_taken(client):
    _shorten(client, custom_code="taken")
    response = _shorten(client, url="https://example.org", custom_code="taken")

    assert response.status_code == 409


@pytest.mark.parametrize("custom_code", ["bad code", "api", "health", "promo\n"])
def test_shorten_invalid_custom_code(client, custom_code):
    assert _shorten(client, custom_code=custom_code).status_code == 400


def test_shorten_custom_code_too_long(client):
    assert _shorten(client, custom_code="x" * 31).status_code == 422


@pytest.mark.parametrize("url", ["not-a-url", "ftp://example.com", "http://localhost/x", "   "])
def test_shorten_invalid_url(client, url):
    assert _shorten(client, url=url).status_code == 400


def test_shorten_sequential_strategy(client):
    response = _shorten(client, strategy="sequential")
    assert response.status_code == 201
    assert response.json()["short_code"] == "1"


@pytest.mark.parametrize("strategy", ["hash-a", "hash-b", "secure-random", "time-based"])
def test_shorten_fixed_length_strategies(client, strategy):
    response = _shorten(client, url=f"https://example.com/{strategy}", strategy=strategy)
    assert response.status_code == 201
    assert len(response.json()["short_code"]) == 7


def test_shorten_unknown_strategy(client):
    assert _shorten(client, strategy="md4").status_code == 422


def test_shorten_with_expiration(client):
    response = _shorten(client, expires_in_days=30)
    assert response.status_code == 201
    assert response.json()["expires_at"] is not None


@pytest.mark.parametrize("payload", [
    {"expires_in_days": 3, "expires_at": "2099-01-01T00:00:00Z"},
    {"expires_at": "2001-01-01T00:00:00Z"},
])
def test_shorten_invalid_expiration(client, payload):
    assert _shorten(client, **payload).status_code == 400


def test_shorten_code_space_exhausted(client, monkeypatch):
    from shortlinks.services import links as link_service

    _shorten(client, url="https://example.com/fixed", custom_code="fixed")
    monkeypatch.setattr(link_service, "generate_code", lambda *args, **kwargs: "fixed")

    assert _shorten(client).status_code == 503


# -------------------------------
# Redirect
# -------------------------------

def test_redirect_records_click(client):
    code = _shorten(client).json()["short_code"]

    response = client.get(
        f"/{code}",
        headers={"User-Agent": "pytest-agent", "Referer": "https://ref.example.com"},
        follow_redirects=False
    )

    assert response.status_code == 302
    assert response.headers["location"] == URL
    assert "no-store" in response.headers["cache-control"]

    stats = client.get(f"/api/url/stats/{code}").json()
    assert stats["clicks_count"] == 1
    assert stats["last_clicked_at"] is not None
    assert stats["recent_clicks"][0]["user_agent"] == "pytest-agent"
    assert stats["recent_clicks"][0]["referer"] == "https://ref.example.com"


def test_redirect_uses_forwarded_ip(client):
    code = _shorten(client).json()["short_code"]
    client.get(f"/{code}", headers={"X-Forwarded-For": "198.51.100.7"}, follow_redirects=False)

    stats = client.get(f"/api/url/stats/{code}").json()
    assert stats["recent_clicks"][0]["ip_address"] == "198.51.100.7"


def test_redirect_is_case_sensitive(client):
    _shorten(client, custom_code="CaseCode")
    assert client.get("/casecode", follow_redirects=False).status_code == 404


def test_redirect_unknown_code(client):
    assert client.get("/nothere", follow_redirects=False).status_code == 404


def test_redirect_invalid_code_format(client):
    assert client.get("/bad!code", follow_redirects=False).status_code == 400


# -------------------------------
# Expired links
# -------------------------------

def test_expired_link_behaviour(client, expire_link):
    code = _shorten(client, expires_in_days=1).json()["short_code"]
    client.get(f"/{code}", follow_redirects=False)
    expire_link(code)

    assert client.get(f"/{code}", follow_redirects=False).status_code == 410
    assert client.post(f"/api/url/track/{code}").status_code == 410
    assert client.put(f"/api/url/{code}", json={"url": "https://example.org"}).status_code == 410

    stats = client.get(f"/api/url/stats/{code}")
    assert stats.status_code == 200
    assert stats.json()["is_expired"] is True
    assert stats.json()["clicks_count"] == 1

    assert client.delete(f"/api/url/{code}").status_code == 200


def test_expired_link_url_gets_new_code(client, expire_link):
    code = _shorten(client).json()["short_code"]
    expire_link(code)

    response = _shorten(client)
    assert response.status_code == 201
    assert response.json()["short_code"] != code


# -------------------------------
# Track
# -------------------------------

def test_track_with_location(client):
    code = _shorten(client).json()["short_code"]

    response = client.post(
        f"/api/url/track/{code}",
        json={"location": {"latitude": 40.71, "longitude": -74.0, "accuracy": 15, "permission_granted": True}}
    )
    assert response.status_code == 200
    assert response.json() == {"success": True, "original_url": URL}

    client.post(f"/api/url/track/{code}")

    stats = client.get(f"/api/url/stats/{code}").json()
    assert stats["clicks_count"] == 2
    assert stats["clicks_with_location"] == 1
    assert stats["location_permission_rate"] == 50.0
    assert stats["recent_clicks"][1]["location"]["latitude"] == 40.71


def test_track_location_without_permission_is_dropped(client):
    code = _shorten(client).json()["short_code"]

    client.post(
        f"/api/url/track/{code}",
        json={"location": {"latitude": 40.71, "longitude": -74.0, "permission_granted": False}}
    )

    stats = client.get(f"/api/url/stats/{code}").json()
    assert stats["clicks_with_location"] == 0
    assert stats["recent_clicks"][0]["location"] is None


def test_track_invalid_coordinates(client):
    code = _shorten(client).json()["short_code"]
    response = client.post(
        f"/api/url/track/{code}",
        json={"location": {"latitude": 123, "longitude": 0, "permission_granted": True}}
    )
    assert response.status_code == 422


def test_track_unknown_code(client):
    assert client.post("/api/url/track/nothere").status_code == 404


# -------------------------------
# Stats, edit, delete
# -------------------------------

def test_stats_unknown_code(client):
    assert client.get("/api/url/stats/nothere").status_code == 404


def test_edit_destination(client):
    code = _shorten(client).json()["short_code"]

    response = client.put(f"/api/url/{code}", json={"url": "https://example.org/new"})

    assert response.status_code == 200
    assert response.json()["original_url"] == "https://example.org/new"
    redirect = client.get(f"/{code}", follow_redirects=False)
    assert redirect.headers["location"] == "https://example.org/new"


def test_edit_expiration(client):
    code = _shorten(client).json()["short_code"]

    data = client.put(f"/api/url/{code}", json={"expires_in_days": 10}).json()
    assert data["expires_at"] is not None

    data = client.put(f"/api/url/{code}", json={"clear_expiration": True}).json()
    assert data["expires_at"] is None


def test_edit_invalid_url(client):
    code = _shorten(client).json()["short_code"]
    assert client.put(f"/api/url/{code}", json={"url": "mailto:me@example.com"}).status_code == 400


def test_edit_blank_url_rejected(client):
    code = _shorten(client).json()["short_code"]

    response = client.put(f"/api/url/{code}", json={"url": "   "})

    assert response.status_code == 400
    assert client.get(f"/api/url/stats/{code}").json()["original_url"] == URL


@pytest.mark.parametrize("extra", [
    {"expires_in_days": 3},
    {"expires_at": "2999-01-01T00:00:00Z"},
])
def test_edit_clear_expiration_conflict(client, extra):
    code = _shorten(client, expires_in_days=5).json()["short_code"]

    response = client.put(f"/api/url/{code}", json={"clear_expiration": True, **extra})

    assert response.status_code == 400
    assert client.get(f"/api/url/stats/{code}").json()["expires_at"] is not None


def test_edit_unknown_code(client):
    assert client.put("/api/url/nothere", json={"url": "https://example.org"}).status_code == 404


def test_delete_link(client):
    code = _shorten(client).json()["short_code"]
    client.get(f"/{code}", follow_redirects=False)

    response = client.delete(f"/api/url/{code}")

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert client.get(f"/api/url/stats/{code}").status_code == 404
    assert client.get(f"/{code}", follow_redirects=False).status_code == 404


def test_delete_unknown_code(client):
    assert client.delete("/api/url/nothere").status_code == 404


# -------------------------------
# Rate limiting
# -------------------------------

def test_shorten_is_rate_limited(client, monkeypatch):
    monkeypatch.setattr(limiter, "enabled", True)
    limiter.reset()
    try:
        statuses = [_shorten(client, url=f"https://example.com/{i}").status_code for i in range(25)]
    finally:
        limiter.reset()

    assert statuses[0] == 201
    assert statuses[-1] == 429
