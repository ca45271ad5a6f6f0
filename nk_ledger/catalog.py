"""
Reference catalog - campaigns, ad groups and shared lists for submission dropdowns.

Refreshed wholesale by the worker at the start of every run.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import duckdb

from nk_core.models import (
    AdGroupTarget,
    CampaignCatalogEntry,
    CampaignTarget,
    KeywordSubmission,
    SharedListEntry,
    SharedListTarget,
)
from nk_core.storage import connect_duckdb


class ReferenceCatalog:
    """Catalog tables in DuckDB (provisioning.campaign_catalog / shared_list_catalog)."""

    def __init__(self, db_path: Union[str, Path] = "negatives.duckdb"):
        self.db_path = Path(db_path)
        self._init_schema()

    def _get_connection(self):
        """Get DuckDB connection"""
        return connect_duckdb(self.db_path)

    def _init_schema(self) -> None:
        conn = self._get_connection()
        conn.execute("CREATE SCHEMA IF NOT EXISTS provisioning;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS provisioning.campaign_catalog (
                row_num INTEGER,
                campaign_id VARCHAR,
                campaign_name VARCHAR,
                ad_group_id VARCHAR,
                ad_group_name VARCHAR
            );
            """
        )
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS provisioning.shared_list_catalog (
                row_num INTEGER,
                shared_list_id VARCHAR,
                shared_list_name VARCHAR
            );
            """
        )
        conn.close()

    def _replace(self, table: str, columns: List[str], rows: List[tuple]) -> int:
        conn = self._get_connection()
        try:
            conn.begin()
            conn.execute(f"DELETE FROM provisioning.{table}")
            if rows:
                placeholders = ", ".join(["?"] * (len(columns) + 1))
                conn.executemany(
                    f"INSERT INTO provisioning.{table} (row_num, {', '.join(columns)}) VALUES ({placeholders})",
                    [(i, *r) for i, r in enumerate(rows, 1)],
                )
            conn.commit()
        except duckdb.Error:
            conn.rollback()
            raise
        finally:
            conn.close()
        return len(rows)

    def replace_campaigns(self, entries: Sequence[CampaignCatalogEntry]) -> int:
        return self._replace(
            "campaign_catalog",
            ["campaign_id", "campaign_name", "ad_group_id", "ad_group_name"],
            [(e.campaign_id, e.campaign_name, e.ad_group_id, e.ad_group_name) for e in entries],
        )

    def replace_shared_lists(self, entries: Sequence[SharedListEntry]) -> int:
        return self._replace(
            "shared_list_catalog",
            ["shared_list_id", "shared_list_name"],
            [(e.shared_list_id, e.shared_list_name) for e in entries],
        )

    def get_campaigns(self) -> List[Dict[str, Any]]:
        """Campaigns grouped with their ad groups: [{id, name, adGroups: [{id, name}]}]"""
        conn = self._get_connection()
        results = conn.execute(
            """
            SELECT campaign_id, campaign_name, ad_group_id, ad_group_name
            FROM provisioning.campaign_catalog
            ORDER BY row_num
            """
        ).fetchall()
        conn.close()

        campaigns: Dict[str, Dict[str, Any]] = {}
        for campaign_id, campaign_name, ad_group_id, ad_group_name in results:
            campaign = campaigns.setdefault(
                campaign_id, {"id": campaign_id, "name": campaign_name, "adGroups": []}
            )
            if ad_group_id and ad_group_name:
                campaign["adGroups"].append({"id": ad_group_id, "name": ad_group_name})
        return list(campaigns.values())

    def get_shared_lists(self) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        results = conn.execute(
            "SELECT shared_list_id, shared_list_name FROM provisioning.shared_list_catalog ORDER BY row_num"
        ).fetchall()
        conn.close()
        return [{"id": r[0], "name": r[1]} for r in results]

    def _lookup(self, sql: str, value: str) -> Optional[str]:
        conn = self._get_connection()
        row = conn.execute(sql, [value]).fetchone()
        conn.close()
        return row[0] if row else None

    def lookup_names(self, submission: KeywordSubmission) -> KeywordSubmission:
        """Fill missing display names from the catalog (ids are never changed)."""
        target = submission.target

        if isinstance(target, CampaignTarget) and not target.campaign_name:
            target = CampaignTarget(target.campaign_id, self._campaign_name(target.campaign_id))
        elif isinstance(target, AdGroupTarget) and not (target.campaign_name and target.ad_group_name):
            target = AdGroupTarget(
                target.campaign_id,
                target.ad_group_id,
                target.campaign_name or self._campaign_name(target.campaign_id),
                target.ad_group_name or self._lookup(
                    "SELECT ad_group_name FROM provisioning.campaign_catalog WHERE ad_group_id = ? LIMIT 1",
                    target.ad_group_id,
                ),
            )
        elif isinstance(target, SharedListTarget) and not target.shared_list_name:
            target = SharedListTarget(
                target.shared_list_id,
                self._lookup(
                    "SELECT shared_list_name FROM provisioning.shared_list_catalog WHERE shared_list_id = ? LIMIT 1",
                    target.shared_list_id,
                ),
            )
        else:
            return submission

        return KeywordSubmission(submission.keyword_text, submission.match_type, target)

    def _campaign_name(self, campaign_id: str) -> Optional[str]:
        return self._lookup(
            "SELECT campaign_name FROM provisioning.campaign_catalog WHERE campaign_id = ? LIMIT 1",
            campaign_id,
        )
