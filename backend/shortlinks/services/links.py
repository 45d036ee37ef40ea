import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.exceptions import CodeAlreadyExistsError, InvalidArgumentsError, LinkExpiredError
from ..core.resolver import claim_unique_code
from ..core.shortener import Strategy, generate_code, validate_custom_code
from ..models import Click, Link
from ..models.link import utcnow
from ..schemas.link import LocationData


logger = logging.getLogger(__name__)


class SQLAlchemyCodeStore:
    """Code store backed by the links table.

    The unique index on links.short_code settles concurrent claims.
    """

    def __init__(self, db: Session):
        self.db = db

    def exists(self, code: str) -> bool:
        return self.db.query(Link.id).filter(Link.short_code == code).first() is not None

    def claim(self, code: str, link: Link) -> None:
        self.db.add(link)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise CodeAlreadyExistsError(code) from e


def to_naive_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC"""
    if moment is None or moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def resolve_expiration(
    expires_at: Optional[datetime] = None,
    expires_in_days: Optional[int] = None
) -> Optional[datetime]:
    """
    Turn the two ways of requesting an expiration into one timestamp.

    Returns:
        Naive UTC expiration, or None when neither was given
    """
    if expires_at is not None and expires_in_days is not None:
        raise InvalidArgumentsError("Provide either expires_at or expires_in_days, not both")

    if expires_in_days is not None:
        if expires_in_days <= 0:
            raise InvalidArgumentsError("expires_in_days must be positive")
        return utcnow() + timedelta(days=expires_in_days)

    expires_at = to_naive_utc(expires_at)
    if expires_at is not None and expires_at <= utcnow():
        raise InvalidArgumentsError("Expiration time must be in the future")
    return expires_at


def get_link(db: Session, code: str) -> Optional[Link]:
    """Exact, case-sensitive lookup by short code"""
    return db.query(Link).filter(Link.short_code == code).first()


def find_reusable_link(db: Session, url: str) -> Optional[Link]:
    """Generated, non-expired link already pointing at url"""
    now = utcnow()
    return db.query(Link).filter(
        Link.original_url == url,
        Link.is_custom == False,  # noqa: E712
        (Link.expires_at == None) | (Link.expires_at > now)  # noqa: E711
    ).order_by(Link.id).first()


def create_link(
    db: Session,
    url: str,
    custom_code: Optional[str] = None,
    strategy: Optional[Strategy] = None,
    expires_at: Optional[datetime] = None
) -> tuple[Link, bool]:
    """
    Create a short link, or reuse an existing one for the same URL.

    Args:
        db: Database session
        url: Validated original URL
        custom_code: Caller-supplied code, skips generation and reuse
        strategy: Generation strategy, defaults to settings.CODE_STRATEGY
        expires_at: Naive UTC expiration or None

    Returns:
        Tuple of (link, created)

    Raises:
        InvalidArgumentsError: bad custom code or strategy
        CodeAlreadyExistsError: custom code is taken
        CodeSpaceExhaustedError: no free generated code was found
    """
    store = SQLAlchemyCodeStore(db)

    if custom_code:
        is_valid, error_msg = validate_custom_code(custom_code)
        if not is_valid:
            raise InvalidArgumentsError(error_msg)

        # Expired links keep their code; codes are never recycled
        if store.exists(custom_code):
            raise CodeAlreadyExistsError(custom_code)

        link = Link(short_code=custom_code, original_url=url, is_custom=True, expires_at=expires_at)
        store.claim(custom_code, link)
        db.refresh(link)
        logger.info("Custom short link created", extra={'code': custom_code})
        return link, True

    existing = find_reusable_link(db, url)
    if existing:
        logger.info("Reusing existing short link", extra={'code': existing.short_code})
        return existing, False

    try:
        strategy = Strategy(strategy or settings.CODE_STRATEGY)
    except ValueError:
        raise InvalidArgumentsError(f"Unknown strategy: {strategy!r}") from None

    if strategy is Strategy.SEQUENTIAL:
        next_id = (db.query(func.max(Link.id)).scalar() or 0) + 1

        def make_candidate(attempt: int) -> str:
            return generate_code(strategy, sequential_id=next_id + attempt)
    else:
        def make_candidate(attempt: int) -> str:
            return generate_code(strategy, url=url, length=settings.SHORT_CODE_LENGTH)

    code = claim_unique_code(
        store,
        make_candidate,
        lambda candidate: Link(short_code=candidate, original_url=url, is_custom=False, expires_at=expires_at),
        max_attempts=settings.MAX_CODE_ATTEMPTS
    )

    link = get_link(db, code)
    logger.info("Short link created", extra={'code': code, 'strategy': strategy.value})
    return link, True


def update_link(
    db: Session,
    link: Link,
    url: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    clear_expiration: bool = False
) -> Link:
    """Change destination and/or expiration of a non-expired link"""
    if link.is_expired:
        raise LinkExpiredError(link.short_code)

    if url:
        link.original_url = url

    if clear_expiration:
        link.expires_at = None
    elif expires_at is not None:
        link.expires_at = expires_at

    db.commit()
    db.refresh(link)
    logger.info("Short link updated", extra={'code': link.short_code})
    return link


def delete_link(db: Session, link: Link) -> None:
    """Delete a link together with its clicks"""
    code = link.short_code
    db.delete(link)
    db.commit()
    logger.info("Short link deleted", extra={'code': code})


def record_click(
    db: Session,
    link: Link,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    referer: Optional[str] = None,
    location: Optional[LocationData] = None,
    retention: Optional[int] = None
) -> Click:
    """
    Store a click and keep the link counters in step with it.

    Only the newest `retention` clicks are kept per link; clicks_count
    keeps counting past that window.
    """
    now = utcnow()
    if link.is_expired_at(now):
        raise LinkExpiredError(link.short_code)

    retention = settings.CLICK_RETENTION if retention is None else retention

    click = Click(
        link_id=link.id,
        clicked_at=now,
        ip_address=ip_address,
        user_agent=user_agent,
        referer=referer
    )
    if location is not None and location.permission_granted:
        click.latitude = location.latitude
        click.longitude = location.longitude
        click.accuracy = location.accuracy
        click.location_permission_granted = True

    db.add(click)

    # Increment in SQL so concurrent redirects don't lose counts
    link.clicks_count = Link.clicks_count + 1
    link.last_clicked_at = now
    db.flush()

    cutoff_id = db.query(Click.id).filter(
        Click.link_id == link.id
    ).order_by(Click.id.desc()).offset(retention).limit(1).scalar()

    if cutoff_id is not None:
        db.query(Click).filter(
            Click.link_id == link.id,
            Click.id <= cutoff_id
        ).delete(synchronize_session=False)

    db.commit()
    logger.info("Click recorded", extra={'code': link.short_code})
    return click
