"""Tests for publish outcome contracts."""


class TestTransferOutcome:
    """Test per-path outcome factories."""

    def test_uploaded_is_ok(self) -> None:
        from zonestore.contracts.results import TransferOutcome

        outcome = TransferOutcome.uploaded("abc/f", "a" * 40, size_bytes=5)

        assert outcome.ok
        assert outcome.status == "uploaded"
        assert outcome.size_bytes == 5
        assert outcome.error is None

    def test_skipped_is_ok(self) -> None:
        from zonestore.contracts.results import TransferOutcome

        assert TransferOutcome.skipped("abc/f", "a" * 40).ok

    def test_failed_carries_error(self) -> None:
        from zonestore.contracts.results import TransferOutcome

        outcome = TransferOutcome.failed("abc/f", "a" * 40, "550 denied")

        assert not outcome.ok
        assert outcome.error == "550 denied"


class TestPublishReport:
    """Test report aggregation."""

    def _report(self):  # type: ignore[no-untyped-def]
        from zonestore.contracts.results import PublishReport, TransferOutcome

        return PublishReport(
            collection="persistent",
            target="cdn",
            outcomes=[
                TransferOutcome.uploaded("a/1", "a" * 40),
                TransferOutcome.skipped("b/2", "b" * 40),
                TransferOutcome.failed("c/3", "c" * 40, "boom"),
            ],
            pruned=["old/x"],
            duration_seconds=1.23456,
        )

    def test_groups_outcomes_by_status(self) -> None:
        report = self._report()

        assert report.uploaded == ["a/1"]
        assert report.skipped == ["b/2"]
        assert report.failed == {"c/3": "boom"}
        assert report.succeeded_count == 2
        assert report.failed_count == 1
        assert not report.ok

    def test_prune_failure_makes_report_not_ok(self) -> None:
        from zonestore.contracts.results import PublishReport

        report = PublishReport(
            collection="persistent", target="cdn", prune_failures={"old/x": "denied"}
        )

        assert report.failed_count == 0
        assert not report.ok

    def test_empty_report_is_ok(self) -> None:
        from zonestore.contracts.results import PublishReport

        assert PublishReport(collection="persistent", target="cdn").ok

    def test_summary_counts(self) -> None:
        summary = self._report().summary()

        assert summary == {
            "collection": "persistent",
            "target": "cdn",
            "uploaded": 1,
            "skipped": 1,
            "failed": 1,
            "pruned": 1,
            "prune_failed": 0,
            "duration_seconds": 1.235,
        }
