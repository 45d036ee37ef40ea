import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..database import get_db
from ..models import Link
from ..schemas.link import LinkCreate, LinkResponse, LinkUpdate, TrackRequest
from ..schemas.analytics import LinkStats
from ..core.exceptions import (
    CodeAlreadyExistsError,
    CodeSpaceExhaustedError,
    InvalidArgumentsError,
    LinkExpiredError,
)
from ..services import links as link_service
from ..services.analytics import build_short_url, get_link_stats
from ..utils.validators import is_valid_url, is_valid_short_code_path, get_client_ip
from ..config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/url")
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    enabled=settings.RATE_LIMIT_ENABLED
)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
    "Pragma": "no-cache",
    "Expires": "0",
}


def link_to_response(link: Link, existing: bool = False) -> dict:
    return {
        "id": link.id,
        "short_code": link.short_code,
        "original_url": link.original_url,
        "short_url": build_short_url(link.short_code),
        "is_custom": link.is_custom,
        "created_at": link.created_at,
        "expires_at": link.expires_at,
        "clicks_count": link.clicks_count,
        "last_clicked_at": link.last_clicked_at,
        "is_expired": link.is_expired,
        "existing": existing
    }


def get_link_or_404(db: Session, short_code: str) -> Link:
    link = link_service.get_link(db, short_code)
    if not link:
        raise HTTPException(status_code=404, detail="Short URL not found")
    return link


def get_active_link_or_error(db: Session, short_code: str) -> Link:
    """Link that may still be redirected to or edited"""
    link = get_link_or_404(db, short_code)
    if link.is_expired:
        raise HTTPException(status_code=410, detail="Short URL has expired")
    return link


def resolve_expiration_or_400(expires_at, expires_in_days):
    try:
        return link_service.resolve_expiration(expires_at, expires_in_days)
    except InvalidArgumentsError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/shorten", response_model=LinkResponse, status_code=201)
@limiter.limit(settings.RATE_LIMIT_SHORTEN)
def create_short_link(
    request: Request,
    response: Response,
    link_data: LinkCreate,
    db: Session = Depends(get_db)
):
    """
    Create a short link.

    A URL that already has a generated, non-expired link gets that link
    back (200) unless a custom code is requested.
    """
    url = link_data.url.strip()

    is_valid, error_msg = is_valid_url(url)
    if not is_valid:
        raise HTTPException(status_code=400, detail=error_msg)

    expires_at = resolve_expiration_or_400(link_data.expires_at, link_data.expires_in_days)

    try:
        link, created = link_service.create_link(
            db,
            url,
            custom_code=link_data.custom_code,
            strategy=link_data.strategy,
            expires_at=expires_at
        )
    except InvalidArgumentsError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CodeAlreadyExistsError:
        raise HTTPException(
            status_code=409,
            detail=f"Short code '{link_data.custom_code}' is already taken"
        )
    except CodeSpaceExhaustedError as e:
        raise HTTPException(status_code=503, detail=str(e))

    if not created:
        response.status_code = 200

    return link_to_response(link, existing=not created)


@router.get("/stats/{short_code}", response_model=LinkStats)
def get_stats(short_code: str, db: Session = Depends(get_db)):
    """
    Get link details and click analytics.

    Available for expired links too.
    """
    link = get_link_or_404(db, short_code)
    return get_link_stats(db, link)


@router.put("/{short_code}", response_model=LinkResponse)
def edit_short_link(
    short_code: str,
    link_data: LinkUpdate,
    db: Session = Depends(get_db)
):
    """Change the destination URL and/or expiration of a non-expired link"""
    link = get_active_link_or_error(db, short_code)

    url = None
    if link_data.url is not None:
        url = link_data.url.strip()
        is_valid, error_msg = is_valid_url(url)
        if not is_valid:
            raise HTTPException(status_code=400, detail=error_msg)

    expires_at = None
    if link_data.clear_expiration:
        if link_data.expires_at is not None or link_data.expires_in_days is not None:
            raise HTTPException(
                status_code=400,
                detail="clear_expiration cannot be combined with expires_at or expires_in_days"
            )
    else:
        expires_at = resolve_expiration_or_400(link_data.expires_at, link_data.expires_in_days)

    try:
        link = link_service.update_link(
            db,
            link,
            url=url,
            expires_at=expires_at,
            clear_expiration=link_data.clear_expiration
        )
    except LinkExpiredError:
        raise HTTPException(status_code=410, detail="Short URL has expired")

    return link_to_response(link)


@router.delete("/{short_code}")
def delete_short_link(short_code: str, db: Session = Depends(get_db)):
    """Delete a link and its click history"""
    link = get_link_or_404(db, short_code)
    link_service.delete_link(db, link)
    return {"success": True, "message": f"Short URL '{short_code}' deleted"}


@router.post("/track/{short_code}")
def track_click(
    short_code: str,
    request: Request,
    track: Optional[TrackRequest] = None,
    db: Session = Depends(get_db)
):
    """
    Record a click sent by the client, optionally with browser geolocation.

    Returns the destination so the client can navigate itself.
    """
    link = get_active_link_or_error(db, short_code)

    try:
        link_service.record_click(
            db,
            link,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get('user-agent', '')[:512] or None,
            referer=request.headers.get('referer', '')[:512] or None,
            location=track.location if track else None
        )
    except LinkExpiredError:
        raise HTTPException(status_code=410, detail="Short URL has expired")

    return {"success": True, "original_url": link.original_url}


def redirect_to_url(
    short_code: str,
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Redirect to the original URL from short code.

    Records click statistics.
    """
    if not is_valid_short_code_path(short_code):
        raise HTTPException(status_code=400, detail="Invalid short code format")

    link = get_active_link_or_error(db, short_code)
    original_url = link.original_url

    try:
        link_service.record_click(
            db,
            link,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get('user-agent', '')[:512] or None,
            referer=request.headers.get('referer', '')[:512] or None
        )
    except LinkExpiredError:
        raise HTTPException(status_code=410, detail="Short URL has expired")

    logger.info("Redirect", extra={'code': short_code})

    # 302 so browsers come back and every visit is counted
    return RedirectResponse(url=original_url, status_code=302, headers=NO_CACHE_HEADERS)
