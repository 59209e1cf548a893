"""Unit tests for the DeduplicationLedger component."""

import pytest

from keychain_monitor.components.dedup_ledger import DeduplicationLedger


class TestDeduplicationLedger:
    """Test cases for DeduplicationLedger."""

    def test_record_and_check(self):
        ledger = DeduplicationLedger()

        assert ledger.has_notified("a") is False
        ledger.record_notified("a")

        assert ledger.has_notified("a") is True
        assert "a" in ledger
        assert len(ledger) == 1

    def test_ids_are_compared_as_strings(self):
        ledger = DeduplicationLedger()
        ledger.record_notified(123)

        assert ledger.has_notified("123") is True

    def test_recording_twice_is_a_no_op(self):
        ledger = DeduplicationLedger()
        ledger.record_notified("a")
        ledger.record_notified("a")

        assert ledger.ids() == ["a"]

    def test_eviction_at_capacity(self):
        """Inserting past a full ledger keeps the newest half plus the new id."""
        ledger = DeduplicationLedger(max_size=1000)
        for i in range(1000):
            ledger.record_notified(f"id-{i}")

        ledger.record_notified("id-1000")

        assert len(ledger) == 501
        assert ledger.has_notified("id-499") is False
        assert ledger.has_notified("id-500") is True
        assert ledger.has_notified("id-999") is True
        assert ledger.has_notified("id-1000") is True
        assert ledger.ids()[0] == "id-500"
        assert ledger.evictions == 1

    def test_size_stays_bounded(self):
        ledger = DeduplicationLedger(max_size=10)
        for i in range(100):
            ledger.record_notified(i)

        assert len(ledger) <= 10
        assert ledger.has_notified(99) is True

    def test_clear(self):
        ledger = DeduplicationLedger()
        ledger.record_notified("a")
        ledger.clear()

        assert len(ledger) == 0

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            DeduplicationLedger(max_size=1)
