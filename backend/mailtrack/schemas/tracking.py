"""Pydantic schemas for tracking responses"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from mailtrack.models import OpenRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SentAckResponse(CamelModel):
    status: str = "success"
    id: str


class TrackingStatusResponse(CamelModel):
    """Point query result; unknown ids simply report opened=false"""
    tracking_id: str
    sent: bool
    sent_at: Optional[datetime] = None
    recipient: Optional[str] = None
    opened: bool
    open_count: int = 0
    opened_at: Optional[datetime] = None
    last_opened_at: Optional[datetime] = None
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None


class StatsResponse(CamelModel):
    total_sent: int
    total_opened: int
    unique_opened: int
    open_rate: float


class MessageReport(CamelModel):
    id: str
    recipient: Optional[str] = None
    subject: Optional[str] = None
    sent_at: datetime
    open_count: int
    first_opened_at: Optional[datetime] = None
    last_opened_at: Optional[datetime] = None


class ReportResponse(CamelModel):
    generated_at: datetime
    stats: StatsResponse
    messages: List[MessageReport]
    recent_opens: List[OpenRecord]


class ClearResponse(CamelModel):
    status: str = "success"
    message: str
