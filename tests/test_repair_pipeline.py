"""
Repair and audit runs over an in-memory message store.
"""
import httpx

from core.extractors.email_extractor import EmailContentExtractor
from core.ir import NO_CONTENT_SENTINEL, MessageRecord
from core.pipeline import duplicate_key, run_audit, run_repair
from core.store import InMemoryMessageStore


class FlakyStore(InMemoryMessageStore):
    """Fails writes for selected ids."""

    def __init__(self, records, failing_ids):
        super().__init__(records)
        self.failing_ids = set(failing_ids)

    def update_content(self, message_id, content):
        if message_id in self.failing_ids:
            raise httpx.ConnectError("connection refused")
        super().update_content(message_id, content)


class TestRunRepair:

    def test_rewrites_changed_emails_only(self, sample_records):
        store = InMemoryMessageStore(sample_records)

        report = run_repair(store, extractor=EmailContentExtractor())

        assert report.scanned == 3
        assert report.changed == 2
        assert report.unchanged == 1
        assert report.degraded == 1
        assert report.failed == 0
        assert store.get_message("1").content == "See you at 3pm!"
        assert store.get_message("2").content == "Already clean text here."
        assert store.get_message("3").content == NO_CONTENT_SENTINEL
        assert store.get_message("4").content == "Running 5 mins late"
        assert all(change.applied for change in report.changes)

    def test_dry_run_writes_nothing(self, sample_records):
        store = InMemoryMessageStore(sample_records)

        report = run_repair(store, extractor=EmailContentExtractor(), dry_run=True)

        assert report.dry_run
        assert report.changed == 2
        assert not any(change.applied for change in report.changes)
        assert store.get_message("1").content == sample_records[0]["content"]

    def test_second_run_is_a_noop(self, sample_records):
        store = InMemoryMessageStore(sample_records)
        extractor = EmailContentExtractor()

        run_repair(store, extractor=extractor)
        report = run_repair(store, extractor=extractor)

        assert report.changed == 0
        assert report.unchanged == 3

    def test_failed_write_does_not_stop_batch(self, sample_records):
        store = FlakyStore(sample_records, failing_ids={"1"})

        report = run_repair(store, extractor=EmailContentExtractor())

        assert report.failed == 1
        assert report.changed == 1
        failed = [c for c in report.changes if c.error]
        assert [c.message_id for c in failed] == ["1"]
        assert store.get_message("3").content == NO_CONTENT_SENTINEL

    def test_limit(self, sample_records):
        report = run_repair(InMemoryMessageStore(sample_records), extractor=EmailContentExtractor(), limit=1)
        assert report.scanned == 1


class TestRunAudit:

    def test_report(self, sample_records):
        records = sample_records + [
            {
                "id": 5,
                "type": "email",
                "content": NO_CONTENT_SENTINEL,
                "created_at": "2025-10-13T18:00:00+00:00",
                "subject": "Booking confirmation",
                "recipient_email": "client@example.com",
            }
        ]

        report = run_audit(InMemoryMessageStore(records), limit=50)

        assert report.total == 5
        assert report.by_type == {"email": 4, "sms": 1}
        assert report.with_html == ["1"]
        assert report.sentinel_count == 1
        assert report.duplicates == {
            "client@example.com-Booking confirmation-2025-10-13": ["2", "1"],
        }
        invalid_ids = {v.message_id for v in report.invalid}
        assert "5" in invalid_ids
        assert "4" not in invalid_ids

    def test_duplicate_key_skips_sentinel(self):
        record = MessageRecord(id="9", content=NO_CONTENT_SENTINEL, subject="s")
        assert duplicate_key(record) is None

    def test_duplicate_key_uses_calendar_day(self):
        morning = MessageRecord(id="1", subject="s", recipient_email="a@b.co", created_at="2025-10-13T01:00:00Z")
        evening = MessageRecord(id="2", subject="s", recipient_email="a@b.co", created_at="2025-10-13T23:00:00Z")
        assert duplicate_key(morning) == duplicate_key(evening)
