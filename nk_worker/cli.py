"""
Negative keyword worker CLI.

Usage:
    python -m nk_worker.cli process configs/client_example.yaml
    python -m nk_worker.cli schedule configs/client_example.yaml
    python -m nk_worker.cli status configs/client_example.yaml
    python -m nk_worker.cli score configs/client_example.yaml --limit 20
    python -m nk_worker.cli seed-mock configs/client_example.yaml
    python -m nk_worker.cli collect configs/client_example.yaml --mode live
"""
from __future__ import annotations

import argparse

from nk_core.config_loader import load_client_config
from nk_core.config_models import ClientConfig
from nk_core.settings import get_settings
from nk_ledger.catalog import ReferenceCatalog
from nk_ledger.ledger import ProvisioningLedger
from nk_ledger.triggers import ProcessingTriggers
from nk_scorer.mock_extract import mock_search_terms
from nk_scorer.performance_store import PerformanceStore
from nk_scorer.scorer import calculate_impact, identify_opportunities
from nk_worker.account import AdsAccount
from nk_worker.mock_account import MockAdsAccount
from nk_worker.worker import ProvisioningWorker


def _resolve(args: argparse.Namespace):
    settings = get_settings()
    mode = (args.mode or settings.mode).lower()
    db_path = args.db_path or settings.db_path
    return settings, mode, db_path


def build_account(mode: str, config: ClientConfig, google_ads_config_path: str) -> AdsAccount:
    if mode == "live":
        from nk_worker.google_ads_account import GoogleAdsAccount
        return GoogleAdsAccount.from_config(google_ads_config_path, config.google_ads.customer_id)
    return MockAdsAccount.from_mock_structure()


def build_worker(mode: str, config: ClientConfig, db_path: str, google_ads_config_path: str) -> ProvisioningWorker:
    return ProvisioningWorker(
        ledger=ProvisioningLedger(db_path),
        account=build_account(mode, config, google_ads_config_path),
        catalog=ReferenceCatalog(db_path),
        triggers=ProcessingTriggers(db_path),
    )


def cmd_process(args: argparse.Namespace) -> int:
    settings, mode, db_path = _resolve(args)
    config = load_client_config(args.client_config)
    print(f"[Worker] {config.client_name} | mode={mode} | db={db_path}")

    worker = build_worker(mode, config, db_path, settings.google_ads_config_path)
    summary = worker.run()

    for r in summary.results:
        print(f"  [{r['status']:<6}] {r['level']:<11} '{r['keyword_text']}' - {r['message']}")

    print(f"[Worker] processed={summary.processed} active={summary.active} failed={summary.failed}")
    if summary.aborted:
        print(f"[Worker] ABORTED: {summary.abort_reason} ({summary.left_pending} left PENDING)")
        return 1
    return 0


def cmd_schedule(args: argparse.Namespace) -> int:
    from nk_worker.scheduler import start_scheduler

    settings, mode, db_path = _resolve(args)
    config = load_client_config(args.client_config)
    interval = config.worker.interval_minutes

    print(f"[Worker] Scheduling runs every {interval} minutes (mode={mode}, db={db_path})")
    start_scheduler(
        lambda: build_worker(mode, config, db_path, settings.google_ads_config_path),
        interval,
    )
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    _, _, db_path = _resolve(args)
    load_client_config(args.client_config)

    status = ProcessingTriggers(db_path).status_summary()
    counts = ProvisioningLedger(db_path).count_by_status()

    print(f"[Worker] Status:           {status['status']}")
    print(f"[Worker] Last processed:   {status['lastProcessed'] or 'never'}")
    print(f"[Worker] Pending triggers: {status['pendingRequests']}")
    for key in ("PENDING", "ACTIVE", "FAILED"):
        print(f"[Worker]   {key:<8} {counts.get(key, 0)}")
    return 0


def cmd_score(args: argparse.Namespace) -> int:
    _, _, db_path = _resolve(args)
    config = load_client_config(args.client_config)

    rows = PerformanceStore(db_path).load_rows()
    candidates = identify_opportunities(rows)
    impact = calculate_impact(candidates)

    print(f"[Scorer] {len(rows)} search terms, {len(candidates)} opportunities")
    print(f"[Scorer] Potential savings: {impact['total_savings']:.2f} {config.currency}")

    print(f"\n{'='*70}")
    print("TOP OPPORTUNITIES (potential savings order)")
    print(f"{'='*70}")
    for i, c in enumerate(candidates[: args.limit], 1):
        print(f"\n  #{i} '{c.search_term}'")
        print(f"     Cost:   {c.cost:.2f} | Clicks: {c.clicks} | Conversions: {c.conversions}")
        print(f"     Match:  {c.recommended_match_type} | Level: {c.recommended_level}")
        print(f"     Where:  {c.campaign_name} / {c.ad_group_name}")
    return 0


def cmd_seed_mock(args: argparse.Namespace) -> int:
    settings, _, db_path = _resolve(args)
    load_client_config(args.client_config)

    rows = mock_search_terms(args.seed if args.seed is not None else settings.mock_seed)
    written = PerformanceStore(db_path).replace_snapshot(rows)

    account = MockAdsAccount.from_mock_structure()
    catalog = ReferenceCatalog(db_path)
    catalog.replace_campaigns(account.list_campaigns())
    catalog.replace_shared_lists(account.list_shared_lists())

    print(f"[Mock] Wrote {written} search terms and the mock catalog to {db_path}")
    return 0


def cmd_collect(args: argparse.Namespace) -> int:
    settings, mode, db_path = _resolve(args)
    if mode != "live":
        print("[Collect] ERROR: collect needs a live account (use --mode live, or seed-mock)")
        return 1

    from nk_worker.google_ads_account import GoogleAdsAccount

    config = load_client_config(args.client_config)
    account = GoogleAdsAccount.from_config(settings.google_ads_config_path, config.google_ads.customer_id)
    rows = account.collect_search_terms()
    written = PerformanceStore(db_path).replace_snapshot(rows)

    print(f"[Collect] Wrote {written} search terms to {db_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nk_worker", description="Negative keyword provisioning worker")
    p.add_argument("--mode", choices=["mock", "live"], default=None, help="Override NK_MODE")
    p.add_argument("--db-path", default=None, help="Override NK_DB_PATH")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("process", help="Run the worker once")
    r.add_argument("client_config", help="Path to client config YAML")
    r.set_defaults(func=cmd_process)

    s = sub.add_parser("schedule", help="Run the worker every worker.interval_minutes")
    s.add_argument("client_config", help="Path to client config YAML")
    s.set_defaults(func=cmd_schedule)

    st = sub.add_parser("status", help="Show processing status and ledger counts")
    st.add_argument("client_config", help="Path to client config YAML")
    st.set_defaults(func=cmd_status)

    sc = sub.add_parser("score", help="List negative keyword opportunities")
    sc.add_argument("client_config", help="Path to client config YAML")
    sc.add_argument("--limit", type=int, default=10, help="How many to show")
    sc.set_defaults(func=cmd_score)

    m = sub.add_parser("seed-mock", help="Write mock search terms and catalog")
    m.add_argument("client_config", help="Path to client config YAML")
    m.add_argument("--seed", type=int, default=None, help="Random seed (default: NK_MOCK_SEED)")
    m.set_defaults(func=cmd_seed_mock)

    c = sub.add_parser("collect", help="Collect last-30-day search terms from Google Ads")
    c.add_argument("client_config", help="Path to client config YAML")
    c.set_defaults(func=cmd_collect)

    return p


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    args = p.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
