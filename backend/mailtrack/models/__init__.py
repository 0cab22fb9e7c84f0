"""Tracking record models"""
from mailtrack.models.sent_record import SentRecord
from mailtrack.models.open_record import OpenRecord

# Export all for convenience
__all__ = ["SentRecord", "OpenRecord"]
