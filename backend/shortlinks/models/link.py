from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship
from ..database import Base


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored in the database"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Link(Base):
    """Short link model"""
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    # Codes are case-sensitive and never reused
    short_code = Column(String(30), unique=True, index=True, nullable=False)
    original_url = Column(String(2048), nullable=False, index=True)
    is_custom = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)  # NULL = never expires
    clicks_count = Column(Integer, default=0, nullable=False)
    last_clicked_at = Column(DateTime, nullable=True)

    # Relationship with clicks
    clicks = relationship(
        "Click",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="Click.id.desc()"
    )

    def is_expired_at(self, moment: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= moment

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(utcnow())

    def __repr__(self):
        return f"<Link {self.short_code} -> {self.original_url}>"
