from __future__ import annotations

from assetsweep.domain.types import (
    DeletionOutcome,
    DeletionStatus,
    FailedDeletion,
    ReconciliationReport,
    RunStage,
    RunStatus,
)


def test_record_sorts_outcomes_into_report_lists() -> None:
    report = ReconciliationReport(category="products")

    report.record(DeletionOutcome("p/a", DeletionStatus.DELETED))
    report.record(DeletionOutcome("p/b", DeletionStatus.ALREADY_ABSENT))
    report.record(DeletionOutcome("p/c", DeletionStatus.FAILED, "error"))
    report.record(DeletionOutcome("p/d", DeletionStatus.SKIPPED, "referenced"))
    report.record(DeletionOutcome("p/e", DeletionStatus.FAILED))

    assert report.deleted == ["p/a", "p/b"]
    assert report.failed == [FailedDeletion("p/c", "error"), FailedDeletion("p/e", "unknown")]
    assert report.skipped == ["p/d"]
    assert report.deleted_count == 2
    assert report.failed_count == 2


def test_payload_uses_caller_facing_keys() -> None:
    report = ReconciliationReport(
        category="reviews",
        referenced_count=4,
        total_in_store=6,
        unused_count=2,
    )
    report.record(DeletionOutcome("peakmode/reviews/a", DeletionStatus.DELETED))
    report.record(DeletionOutcome("peakmode/reviews/b", DeletionStatus.FAILED, "HTTP 500: down"))
    report.finish()

    payload = report.to_payload()

    assert payload["referencedCount"] == 4
    assert payload["totalInStore"] == 6
    assert payload["unusedCount"] == 2
    assert payload["deletedCount"] == 1
    assert payload["failedCount"] == 1
    assert payload["deleted"] == ["peakmode/reviews/a"]
    assert payload["failed"] == [{"id": "peakmode/reviews/b", "reason": "HTTP 500: down"}]
    assert payload["status"] == "completed"
    assert payload["stage"] is None
    assert payload["unused"] == []
    assert payload["finishedAt"] is not None
    assert payload["message"] == "Cleanup complete: 1 unused objects deleted, 1 failed"


def test_failed_report_names_the_stage() -> None:
    report = ReconciliationReport(category="messages").fail(
        RunStage.FETCH_REFERENCES, "Failed to query messages: timeout"
    )

    assert report.status is RunStatus.FAILED
    assert not report.succeeded
    assert report.deleted_count == 0
    assert report.message == (
        "Run failed at stage fetch_references, no changes made: Failed to query messages: timeout"
    )


def test_only_stages_before_deletion_can_abort_a_run() -> None:
    assert [stage.value for stage in RunStage] == ["fetch_references", "enumerate_store"]
