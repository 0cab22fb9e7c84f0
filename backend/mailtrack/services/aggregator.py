"""Aggregate statistics and per-message reports, recomputed on every read"""
from typing import Any, Dict, List

from mailtrack.models import OpenRecord
from mailtrack.services.event_store import StoreSnapshot


def compute_stats(snapshot: StoreSnapshot) -> Dict[str, Any]:
    """Totals and unique-open rate for a snapshot

    Opens for unknown tracking ids count towards totalOpened and
    uniqueOpened, so openRate can exceed 100.
    """
    total_sent = len(snapshot.sent)
    total_opened = len(snapshot.opens)
    unique_opened = len({o.tracking_id for o in snapshot.opens})
    open_rate = round(unique_opened / total_sent * 100, 2) if total_sent else 0

    return {
        "totalSent": total_sent,
        "totalOpened": total_opened,
        "uniqueOpened": unique_opened,
        "openRate": open_rate,
    }


def build_report(snapshot: StoreSnapshot, recent_limit: int = 10) -> Dict[str, Any]:
    """Per-message open timeline plus the most recent opens overall"""
    opens_by_id: Dict[str, List[OpenRecord]] = {}
    for o in snapshot.opens:
        opens_by_id.setdefault(o.tracking_id, []).append(o)

    messages = []
    for record in sorted(snapshot.sent.values(), key=lambda r: (r.sent_at, r.id)):
        timestamps = [o.observed_at for o in opens_by_id.get(record.id, [])]
        messages.append({
            "id": record.id,
            "recipient": record.recipient,
            "subject": record.subject,
            "sentAt": record.sent_at,
            "openCount": len(timestamps),
            "firstOpenedAt": min(timestamps) if timestamps else None,
            "lastOpenedAt": max(timestamps) if timestamps else None,
        })

    recent = sorted(snapshot.opens, key=lambda o: o.observed_at, reverse=True)
    recent = recent[:recent_limit] if recent_limit > 0 else []

    return {
        "generatedAt": snapshot.taken_at,
        "stats": compute_stats(snapshot),
        "messages": messages,
        "recentOpens": recent,
    }
