"""
Test the Provisioning Worker against the in-memory mock account.

Test Flow:
1. Success: PENDING -> ACTIVE with the campaign name in the message
2. Not found / rejected / invalid level -> FAILED with the reason
3. One bad request does not stop the others
4. Transient account failure leaves everything PENDING
5. Ledger write errors are retried, then stop the run with rows PENDING
6. Catalog refresh and processing trigger completion

Run: python tools/testing/test_worker.py
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import duckdb

from nk_core.errors import TransientAccountError
from nk_core.models import AdGroupTarget, CampaignTarget, KeywordSubmission, SharedListTarget
from nk_ledger.catalog import ReferenceCatalog
from nk_ledger.ledger import ProvisioningLedger
from nk_ledger.triggers import ProcessingTriggers
from nk_worker.mock_account import MockAdsAccount
from nk_worker.scheduler import JOB_ID, build_scheduler, run_worker_job
from nk_worker.worker import ProvisioningWorker


def setup_worker(account=None):
    db_path = str(Path(tempfile.mkdtemp(prefix="nk_worker_")) / "test.duckdb")
    ledger = ProvisioningLedger(db_path)
    catalog = ReferenceCatalog(db_path)
    triggers = ProcessingTriggers(db_path)
    account = account or MockAdsAccount(
        campaigns={"123": "Running Shoes - Search"},
        ad_groups={"456": ("123", "Trail Running Shoes")},
        shared_lists={"789": "Account Negatives"},
    )
    worker = ProvisioningWorker(ledger, account, catalog=catalog, triggers=triggers)
    return worker, ledger, catalog, triggers, account, db_path


def test_success_marks_active():
    print("\n=== TEST 1: Admission + Processing Success ===")

    worker, ledger, _, _, account, _ = setup_worker()
    request = ledger.append([KeywordSubmission("free shipping", "BROAD", CampaignTarget("123"))]).requests[0]
    assert ledger.get(request.id).status == "PENDING"

    summary = worker.run()

    row = ledger.get(request.id)
    assert row.status == "ACTIVE"
    assert "Running Shoes - Search" in row.message
    assert row.message == 'Added to campaign "Running Shoes - Search"'
    assert row.processed_date is not None
    assert ("free shipping", "BROAD") in account.negatives[("CAMPAIGN", "123")]
    assert summary.processed == 1 and summary.active == 1 and not summary.aborted
    print(f"✅ PASS: {row.message}")


def test_all_levels():
    worker, ledger, _, _, _, _ = setup_worker()
    ledger.append([
        KeywordSubmission("trail", "EXACT", AdGroupTarget("123", "456")),
        KeywordSubmission("jobs", "PHRASE", SharedListTarget("789")),
    ])

    worker.run()

    messages = [r.message for r in ledger.list_all()]
    assert messages == ['Added to ad group "Trail Running Shoes"', 'Added to shared list "Account Negatives"']


def test_not_found_and_rejection_fail():
    print("\n=== TEST 2: Not Found / Rejected ===")

    worker, ledger, _, _, account, _ = setup_worker()
    account.reject[("CAMPAIGN", "123", "shoes")] = "The keyword is too broad."
    ledger.append([
        KeywordSubmission("x", "EXACT", CampaignTarget("999")),
        KeywordSubmission("x", "EXACT", AdGroupTarget("123", "998")),
        KeywordSubmission("x", "EXACT", SharedListTarget("997")),
        KeywordSubmission("shoes", "EXACT", CampaignTarget("123")),
    ])

    summary = worker.run()

    rows = ledger.list_all()
    assert [r.status for r in rows] == ["FAILED"] * 4
    assert [r.message for r in rows] == [
        "Campaign not found: 999",
        "Ad group not found: 998",
        "Shared list not found: 997",
        "The keyword is too broad.",
    ]
    assert summary.failed == 4 and summary.active == 0
    print("✅ PASS: reasons recorded verbatim")


def test_invalid_level_and_isolation():
    print("\n=== TEST 3: Invalid Level / Isolation ===")

    worker, ledger, _, _, account, db_path = setup_worker()
    ids = [r.id for r in ledger.append([
        KeywordSubmission("a", "EXACT", CampaignTarget("123")),
        KeywordSubmission("b", "EXACT", CampaignTarget("123")),
        KeywordSubmission("c", "EXACT", CampaignTarget("123")),
    ]).requests]

    # A row that bypassed validation
    conn = duckdb.connect(db_path)
    conn.execute("UPDATE provisioning.negative_keyword_requests SET level = 'ACCOUNT' WHERE id = ?", [ids[0]])
    conn.close()

    # Second mutation blows up unexpectedly
    original = account.add_negative_keyword

    def flaky(entity, text, match_type):
        if text == "b":
            raise RuntimeError("boom")
        return original(entity, text, match_type)

    account.add_negative_keyword = flaky

    worker.run()

    rows = {r.id: r for r in ledger.list_all()}
    assert rows[ids[0]].status == "FAILED"
    assert rows[ids[0]].message == "Invalid keyword level: ACCOUNT"
    assert rows[ids[1]].status == "FAILED"
    assert rows[ids[1]].message == "boom"
    assert rows[ids[2]].status == "ACTIVE"
    print("✅ PASS: failures isolated per request")


def test_transient_failure_leaves_rows_pending():
    print("\n=== TEST 4: Transient Failure ===")

    class UnreachableAccount(MockAdsAccount):
        def find_campaign(self, campaign_id):
            raise TransientAccountError("Connection refused")

        def list_campaigns(self):
            raise TransientAccountError("Connection refused")

    worker, ledger, _, triggers, _, _ = setup_worker(UnreachableAccount())
    ledger.append([
        KeywordSubmission("a", "EXACT", CampaignTarget("123")),
        KeywordSubmission("b", "EXACT", CampaignTarget("123")),
    ])
    triggers.add()
    before = ledger.list_all()

    summary = worker.run()

    after = ledger.list_all()
    assert after == before
    assert all(r.status == "PENDING" for r in after)
    assert summary.aborted is True
    assert summary.failed == 0
    assert summary.left_pending == 2
    assert triggers.status_summary()["status"] == "Processing pending"
    print(f"✅ PASS: aborted ({summary.abort_reason}), nothing FAILED")


def test_transient_mid_run_keeps_remaining_pending():
    worker, ledger, _, _, account, _ = setup_worker()
    account.transient_after = 1
    requests = ledger.append([
        KeywordSubmission("a", "EXACT", CampaignTarget("123")),
        KeywordSubmission("b", "EXACT", CampaignTarget("123")),
        KeywordSubmission("c", "EXACT", CampaignTarget("123")),
    ]).requests

    summary = worker.run()

    assert [r.status for r in ledger.list_all()] == ["ACTIVE", "PENDING", "PENDING"]
    assert summary.active == 1 and summary.left_pending == 2 and summary.aborted

    # Next run picks the rest up
    account.transient_after = None
    worker.run()
    assert [r.status for r in ledger.list_all()] == ["ACTIVE", "ACTIVE", "ACTIVE"]
    assert ledger.get(requests[1].id).added_date == requests[1].added_date


def test_failed_rows_not_retried():
    worker, ledger, _, _, _, _ = setup_worker()
    request = ledger.append([KeywordSubmission("x", "EXACT", CampaignTarget("999"))]).requests[0]

    worker.run()
    first = ledger.get(request.id)
    summary = worker.run()

    assert summary.processed == 0
    assert ledger.get(request.id) == first


def _three_pending(ledger):
    return ledger.append([
        KeywordSubmission("a", "EXACT", CampaignTarget("123")),
        KeywordSubmission("b", "EXACT", CampaignTarget("123")),
        KeywordSubmission("c", "EXACT", CampaignTarget("123")),
    ]).requests


def test_outcome_write_retried_after_storage_error():
    print("\n=== TEST 5: Outcome Write Retry ===")

    worker, ledger, _, triggers, account, _ = setup_worker()
    worker.outcome_retry_delay = 0
    _three_pending(ledger)
    triggers.add()

    mark_outcome = ledger.mark_outcome
    calls = []

    def flaky_mark_outcome(request_id, status, message):
        calls.append(request_id)
        if len(calls) == 1:
            raise duckdb.IOException("Could not set lock on file")
        return mark_outcome(request_id, status, message)

    ledger.mark_outcome = flaky_mark_outcome
    summary = worker.run()

    assert not summary.aborted
    assert summary.active == 3
    assert [r.status for r in ledger.list_all()] == ["ACTIVE", "ACTIVE", "ACTIVE"]
    assert account.mutation_calls == 3
    assert triggers.status_summary()["status"] == "Up to date"
    print(f"✅ PASS: {len(calls)} outcome writes for 3 requests")


def test_outcome_write_failure_stops_run():
    worker, ledger, _, triggers, account, _ = setup_worker()
    worker.outcome_retry_delay = 0
    _three_pending(ledger)
    triggers.add()

    def locked_mark_outcome(request_id, status, message):
        raise duckdb.IOException("Could not set lock on file")

    ledger.mark_outcome = locked_mark_outcome
    summary = worker.run()

    assert summary.aborted
    assert summary.left_pending == 3
    assert summary.processed == 0
    assert "Could not set lock on file" in summary.abort_reason
    assert account.mutation_calls == 1
    assert [r.status for r in ledger.list_all()] == ["PENDING", "PENDING", "PENDING"]
    assert triggers.status_summary()["status"] == "Processing pending"


def test_catalog_refresh_and_triggers():
    print("\n=== TEST 6: Catalog + Triggers ===")

    worker, ledger, catalog, triggers, _, _ = setup_worker()
    ledger.append([
        KeywordSubmission("a", "EXACT", CampaignTarget("123")),
        KeywordSubmission("b", "EXACT", CampaignTarget("999")),
    ])
    triggers.add()

    worker.run()

    assert catalog.get_campaigns() == [
        {"id": "123", "name": "Running Shoes - Search", "adGroups": [{"id": "456", "name": "Trail Running Shoes"}]}
    ]
    assert catalog.get_shared_lists() == [{"id": "789", "name": "Account Negatives"}]

    trigger = triggers.list_all()[0]
    assert trigger.status == "COMPLETED"
    assert trigger.message == "Processed: 1 successful, 1 failed"
    assert triggers.status_summary()["status"] == "Up to date"
    print("✅ PASS: catalogs replaced, trigger completed")


def test_catalog_refresh_failure_does_not_stop_run():
    class BrokenCatalogAccount(MockAdsAccount):
        def list_campaigns(self):
            raise RuntimeError("report failed")

    account = BrokenCatalogAccount(campaigns={"123": "Shoes"})
    worker, ledger, catalog, _, _, _ = setup_worker(account)
    ledger.append([KeywordSubmission("a", "EXACT", CampaignTarget("123"))])

    summary = worker.run()

    assert summary.active == 1
    assert catalog.get_campaigns() == []


def test_mock_structure_account():
    account = MockAdsAccount.from_mock_structure()
    entries = account.list_campaigns()

    assert account.find_campaign("1001").name == "Running Shoes - Search"
    assert account.find_ad_group("2001").name == "Trail Running Shoes"
    assert account.find_shared_list("3001") is not None
    assert len({e.campaign_id for e in entries}) == 3
    assert len(entries) == 4


def test_scheduler_job_is_single_flight():
    print("\n=== TEST 7: Scheduler ===")

    worker, ledger, _, _, _, _ = setup_worker()
    ledger.append([KeywordSubmission("a", "EXACT", CampaignTarget("123"))])

    scheduler = build_scheduler(lambda: worker, interval_minutes=15)
    job = scheduler.get_job(JOB_ID)
    assert job.max_instances == 1
    assert job.coalesce is True

    run_worker_job(lambda: worker)
    assert ledger.list_all()[0].status == "ACTIVE"

    def broken_factory():
        raise RuntimeError("no database")

    # Logged, not raised
    run_worker_job(broken_factory)
    print("✅ PASS: max_instances=1, coalesce, errors contained")


if __name__ == "__main__":
    print("=" * 70)
    print("PROVISIONING WORKER TESTS")
    print("=" * 70)

    test_success_marks_active()
    test_all_levels()
    test_not_found_and_rejection_fail()
    test_invalid_level_and_isolation()
    test_transient_failure_leaves_rows_pending()
    test_transient_mid_run_keeps_remaining_pending()
    test_failed_rows_not_retried()
    test_outcome_write_retried_after_storage_error()
    test_outcome_write_failure_stops_run()
    test_catalog_refresh_and_triggers()
    test_catalog_refresh_failure_does_not_stop_run()
    test_mock_structure_account()
    test_scheduler_job_is_single_flight()

    print("\n" + "=" * 70)
    print("✅ ALL WORKER TESTS PASSED")
    print("=" * 70)
