"""Event store - ingestion, dedup and in-memory views over the event logs"""
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from fastapi import Request
from pydantic import ValidationError

from mailtrack.core.exceptions import InvalidInput, PersistenceFailure
from mailtrack.core.logging import tracking_logger
from mailtrack.core.metrics import (
    open_events_counter, persistence_failures_counter, sent_records_counter
)
from mailtrack.core.otel import event_span
from mailtrack.core.security import resolve_client_ip
from mailtrack.db.dedup_index import DedupIndex
from mailtrack.db.event_log import EventLog
from mailtrack.models import OpenRecord, SentRecord
from mailtrack.models.base import utcnow

logger = tracking_logger


class OpenResult(str, Enum):
    """Internal outcome of an open signal (never shown to the remote party)"""
    RECORDED = "recorded"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class ObserverContext:
    """What the transport layer knows about whoever fetched the pixel"""
    user_agent: Optional[str] = None
    forwarded_for: Optional[str] = None
    remote_addr: Optional[str] = None
    referer: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ip_address(self) -> str:
        return resolve_client_ip(self.forwarded_for, self.remote_addr)


@dataclass(frozen=True)
class StoreSnapshot:
    """Consistent copy of both views, taken under both locks"""
    sent: Dict[str, SentRecord]
    opens: List[OpenRecord]
    taken_at: datetime


class EventStore:
    """Owns the sent view, the open view and the dedup index.

    Locking: one lock for the sent view, one for open view + dedup index.
    When both are needed they are taken in that order. Each accepted event
    updates the view first and is then appended to its log inside the same
    critical section; a failed append is logged and not rolled back, so a
    crash between the two steps can lose an event.
    """

    def __init__(
        self,
        sent_log: EventLog[SentRecord],
        open_log: EventLog[OpenRecord],
        clock: Callable[[], datetime] = utcnow,
    ):
        self.sent_log = sent_log
        self.open_log = open_log
        self._clock = clock

        self._sent_lock = threading.Lock()
        self._open_lock = threading.Lock()

        self._sent: Dict[str, SentRecord] = {}
        self._opens: List[OpenRecord] = []
        self._opens_by_id: Dict[str, List[OpenRecord]] = {}
        self._dedup = DedupIndex()

    @classmethod
    def from_settings(cls, settings) -> "EventStore":
        return cls(
            sent_log=EventLog(settings.sent_log_path, SentRecord, "sent", fsync=settings.FSYNC_WRITES),
            open_log=EventLog(settings.open_log_path, OpenRecord, "open", fsync=settings.FSYNC_WRITES),
        )

    @contextmanager
    def _all_views(self):
        with self._sent_lock:
            with self._open_lock:
                yield

    def _reset_views(self) -> None:
        self._sent = {}
        self._opens = []
        self._opens_by_id = {}
        self._dedup.clear()

    def _insert_open(self, record: OpenRecord) -> None:
        self._dedup.add(record.tracking_id, record.ip_address)
        self._opens.append(record)
        self._opens_by_id.setdefault(record.tracking_id, []).append(record)

    def load(self) -> Dict[str, int]:
        """Replay both logs into empty views"""
        sent_records = self.sent_log.load_all()
        open_records = self.open_log.load_all()
        duplicate_opens = 0

        with self._all_views():
            self._reset_views()
            for record in sent_records:
                # Last write wins for a repeated id
                self._sent[record.id] = record
            for record in open_records:
                if self._dedup.should_accept(record.tracking_id, record.ip_address):
                    self._insert_open(record)
                else:
                    duplicate_opens += 1
            counts = {"sent": len(self._sent), "opens": len(self._opens)}

        if duplicate_opens:
            logger.warning(f"Ignored {duplicate_opens} duplicate open record(s) while replaying the open log")
        logger.info(f"Event store loaded: {counts['sent']} sent record(s), {counts['opens']} open record(s)")
        return counts

    def record_sent(self, payload: Any, client_ip: Optional[str] = None) -> str:
        """Validate and store a sent record, returning its id"""
        if not isinstance(payload, dict):
            raise InvalidInput("Request body must be a JSON object")

        raw_id = payload.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int, float)):
            raise InvalidInput("Missing required field: id")
        message_id = str(raw_id).strip()
        if not message_id:
            raise InvalidInput("Missing required field: id")

        data = dict(payload)
        data["id"] = message_id
        data.pop("client_ip", None)
        data["clientIP"] = client_ip
        if data.get("sent_at") is None:
            data.pop("sent_at", None)
            if data.get("sentAt") is None:
                data["sentAt"] = self._clock()

        try:
            record = SentRecord.model_validate(data)
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise InvalidInput(f"Invalid sent record field(s): {fields}") from e

        with self._sent_lock:
            if record.id in self._sent:
                logger.info(f"Sent record {record.id} already exists, replacing it")
            self._sent[record.id] = record
            try:
                self.sent_log.append(record)
            except PersistenceFailure as e:
                persistence_failures_counter.labels(log="sent").inc()
                logger.error(f"Sent record {record.id} kept in memory but not persisted: {e}")

        sent_records_counter.inc()
        logger.info(f"Recorded sent message {record.id} (recipient: {record.recipient or 'n/a'})")
        return record.id

    def record_open(self, tracking_id: str, observer: ObserverContext) -> OpenResult:
        """Record an open signal; duplicates on (tracking_id, ip) are dropped"""
        tracking_id = (tracking_id or "").strip()
        ip_address = observer.ip_address

        with event_span("event_store.record_open", tracking_id=tracking_id or None) as span:
            result = self._record_open(tracking_id, ip_address, observer)
            span.set_attribute("mailtrack.result", result.value)

        open_events_counter.labels(result=result.value).inc()
        if result is OpenResult.REJECTED:
            logger.debug(f"Open for {tracking_id or '<empty>'} from {ip_address} ignored")
        else:
            logger.info(f"Open recorded for {tracking_id} from {ip_address}")
        return result

    def _record_open(self, tracking_id: str, ip_address: str, observer: ObserverContext) -> OpenResult:
        if not tracking_id:
            return OpenResult.REJECTED

        with self._sent_lock:
            known = tracking_id in self._sent
        if not known:
            logger.info(f"Open for unknown tracking id {tracking_id}, recording anyway")

        with self._open_lock:
            if not self._dedup.should_accept(tracking_id, ip_address):
                return OpenResult.REJECTED

            record = OpenRecord(
                tracking_id=tracking_id,
                observed_at=self._clock(),
                user_agent=observer.user_agent or None,
                ip_address=ip_address,
                referer=observer.referer or None,
                headers=dict(observer.headers),
            )
            self._insert_open(record)
            try:
                self.open_log.append(record)
            except PersistenceFailure as e:
                persistence_failures_counter.labels(log="open").inc()
                logger.error(f"Open for {tracking_id} kept in memory but not persisted: {e}")
                return OpenResult.FAILED
            return OpenResult.RECORDED

    def get_tracking_status(self, tracking_id: str) -> Dict[str, Any]:
        """Point query for one tracking id"""
        with self._all_views():
            sent = self._sent.get(tracking_id)
            opens = list(self._opens_by_id.get(tracking_id, []))

        first = min(opens, key=lambda o: o.observed_at) if opens else None
        last = max(opens, key=lambda o: o.observed_at) if opens else None
        return {
            "trackingId": tracking_id,
            "sent": sent is not None,
            "sentAt": sent.sent_at if sent else None,
            "recipient": sent.recipient if sent else None,
            "opened": bool(opens),
            "openCount": len(opens),
            "openedAt": first.observed_at if first else None,
            "lastOpenedAt": last.observed_at if last else None,
            "userAgent": first.user_agent if first else None,
            "ipAddress": first.ip_address if first else None,
        }

    def get_recent_opens(self, window: timedelta) -> List[OpenRecord]:
        """Opens observed within `window` of now (no ordering guarantee)"""
        try:
            cutoff = self._clock() - window
        except OverflowError:
            # Window reaches past the earliest representable time
            cutoff = datetime.min.replace(tzinfo=timezone.utc)
        with self._open_lock:
            return [o for o in self._opens if o.observed_at >= cutoff]

    def get_all_tracked(self) -> List[SentRecord]:
        with self._sent_lock:
            return list(self._sent.values())

    def list_opens(self) -> List[OpenRecord]:
        with self._open_lock:
            return list(self._opens)

    def snapshot(self) -> StoreSnapshot:
        with self._all_views():
            return StoreSnapshot(
                sent=dict(self._sent),
                opens=list(self._opens),
                taken_at=self._clock(),
            )

    def clear_all(self) -> None:
        """Truncate both logs and reset every view under both locks.

        If a truncate fails the views are left as they were and the
        PersistenceFailure propagates to the caller.
        """
        with self._all_views():
            try:
                self.sent_log.clear()
                self.open_log.clear()
            except PersistenceFailure as e:
                persistence_failures_counter.labels(log="clear").inc()
                logger.error(f"Clearing tracking data failed: {e}")
                raise
            self._reset_views()
        logger.warning("All tracking data cleared")


def get_event_store(request: Request) -> EventStore:
    """Dependency for FastAPI endpoints"""
    return request.app.state.event_store
