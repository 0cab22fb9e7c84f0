"""Event log persistence tests"""
import pytest

from mailtrack.core.exceptions import PersistenceFailure
from mailtrack.db.event_log import EventLog
from mailtrack.models import OpenRecord, SentRecord


def open_log(path) -> EventLog:
    return EventLog(path, OpenRecord, "open", fsync=False)


@pytest.mark.critical
class TestEventLog:
    """Test append / load_all / clear"""

    def test_missing_file_loads_empty(self, data_dir):
        log = open_log(data_dir / "opens.jsonl")
        assert log.load_all() == []

    def test_append_then_load_preserves_order(self, data_dir):
        log = open_log(data_dir / "opens.jsonl")
        records = [OpenRecord(tracking_id=f"msg-{i}", ip_address="203.0.113.7") for i in range(5)]
        for record in records:
            log.append(record)

        lines = (data_dir / "opens.jsonl").read_text().splitlines()
        assert len(lines) == 5
        assert open_log(data_dir / "opens.jsonl").load_all() == records

    def test_corrupt_lines_are_skipped(self, data_dir):
        path = data_dir / "opens.jsonl"
        log = open_log(path)
        good = OpenRecord(tracking_id="msg-1", ip_address="203.0.113.7")
        log.append(good)
        with open(path, "a", encoding="utf-8") as f:
            f.write("not json at all\n")
            f.write("\n")
            f.write('{"unexpected": "shape"}\n')
            f.write("[1, 2, 3]\n")
        log.append(OpenRecord(tracking_id="msg-2", ip_address="203.0.113.8"))

        loaded = open_log(path).load_all()
        assert [r.tracking_id for r in loaded] == ["msg-1", "msg-2"]

    def test_torn_trailing_line_is_skipped_and_next_append_starts_fresh(self, data_dir):
        path = data_dir / "opens.jsonl"
        log = open_log(path)
        log.append(OpenRecord(tracking_id="msg-1", ip_address="203.0.113.7"))
        with open(path, "a", encoding="utf-8") as f:
            f.write('{"trackingId": "msg-torn", "ipAdd')

        reopened = open_log(path)
        assert [r.tracking_id for r in reopened.load_all()] == ["msg-1"]

        reopened.append(OpenRecord(tracking_id="msg-2", ip_address="203.0.113.7"))
        assert [r.tracking_id for r in open_log(path).load_all()] == ["msg-1", "msg-2"]

    def test_clear_truncates(self, data_dir):
        path = data_dir / "sent.jsonl"
        log = EventLog(path, SentRecord, "sent", fsync=False)
        log.append(SentRecord(id="msg-1"))
        log.clear()
        assert path.read_text() == ""
        assert log.load_all() == []

    def test_append_failure_raises_persistence_failure(self, data_dir):
        # A directory where the log file should be makes every open() fail
        path = data_dir / "opens.jsonl"
        path.mkdir()
        log = open_log(path)
        with pytest.raises(PersistenceFailure):
            log.append(OpenRecord(tracking_id="msg-1", ip_address="203.0.113.7"))

    def test_clear_failure_raises_persistence_failure(self, data_dir):
        path = data_dir / "opens.jsonl"
        path.mkdir()
        with pytest.raises(PersistenceFailure):
            open_log(path).clear()

    def test_fsync_is_called_when_enabled(self, data_dir, monkeypatch):
        calls = []
        monkeypatch.setattr("mailtrack.db.event_log.os.fsync", lambda fd: calls.append(fd))
        log = EventLog(data_dir / "sent.jsonl", SentRecord, "sent", fsync=True)
        log.append(SentRecord(id="msg-1"))
        assert len(calls) == 1
