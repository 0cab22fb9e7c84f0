"""OpenRecord model"""
from datetime import datetime
from typing import Dict, Optional, Tuple

from pydantic import Field, field_validator

from mailtrack.models.base import RecordBase, ensure_utc, utcnow


class OpenRecord(RecordBase):
    """Marks that the tracking pixel of a message was fetched by some observer"""

    tracking_id: str
    observed_at: datetime = Field(default_factory=utcnow)
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    referer: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("observed_at")
    @classmethod
    def normalize_observed_at(cls, v):
        return ensure_utc(v)

    @property
    def dedup_key(self) -> Tuple[str, Optional[str]]:
        # User agent is deliberately not part of the key
        return (self.tracking_id, self.ip_address)
