from sqlalchemy import Column, Integer, String, DateTime, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from ..database import Base
from .link import utcnow


class Click(Base):
    """Click statistics model"""
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False, index=True)
    clicked_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    ip_address = Column(String(45), nullable=True)  # IPv4 or IPv6
    user_agent = Column(String(512), nullable=True)
    referer = Column(String(512), nullable=True)

    # Browser geolocation, only stored when the visitor granted permission
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)
    location_permission_granted = Column(Boolean, default=False, nullable=False)

    # Relationship with link
    link = relationship("Link", back_populates="clicks")

    def __repr__(self):
        return f"<Click {self.id} for link {self.link_id}>"
