"""SentRecord model"""
from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from mailtrack.models.base import RecordBase, ensure_utc, utcnow


class SentRecord(RecordBase):
    """Marks that a message carrying a tracking id was dispatched.

    Extra caller-supplied fields are kept as-is and written back to the log.
    """
    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    recipient: Optional[str] = None
    subject: Optional[str] = None
    sent_at: datetime = Field(default_factory=utcnow)
    client_ip: Optional[str] = Field(default=None, alias="clientIP")

    @field_validator("id")
    @classmethod
    def strip_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("id must not be empty")
        return v

    @field_validator("sent_at")
    @classmethod
    def normalize_sent_at(cls, v):
        return ensure_utc(v)
