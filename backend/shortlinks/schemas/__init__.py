from .link import LinkCreate, LinkResponse, LinkUpdate, LocationData, TrackRequest
from .analytics import ClickRecord, LinkStats, RefererStats

__all__ = [
    "LinkCreate", "LinkResponse", "LinkUpdate", "LocationData", "TrackRequest",
    "ClickRecord", "LinkStats", "RefererStats",
]
