# nk_scorer/performance_store.py
"""
Performance Store - the search-term snapshot the scorer and dashboard read.

A collector run replaces the whole snapshot (no incremental merge). Readers
get rows back in the order the collector wrote them.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, List, Sequence, Tuple, Union

import duckdb

from nk_core.logging_config import setup_logging
from nk_core.models import PerformanceRow
from nk_core.storage import connect_duckdb
from nk_scorer.validations import validate_snapshot

logger = setup_logging(__name__)


# -----------------------------
# Column contract
# -----------------------------
SEARCH_TERM_COLS: List[str] = [
    "row_num",
    "id",
    "search_term",
    "campaign_name",
    "ad_group_name",
    "keyword_text",
    "cost",
    "clicks",
    "impressions",
    "conversions",
    "report_date",
]


def _row_to_tuple(row_num: int, row: PerformanceRow) -> Tuple[Any, ...]:
    return (
        row_num,
        row.id,
        row.search_term,
        row.campaign_name,
        row.ad_group_name,
        row.keyword_text,
        row.cost,
        row.clicks,
        row.impressions,
        row.conversions,
        row.date,
    )


class PerformanceStore:
    """Search-term performance snapshot in DuckDB (analytics.search_term_performance)."""

    def __init__(self, db_path: Union[str, Path] = "negatives.duckdb"):
        self.db_path = Path(db_path)
        self._init_schema()

    def _get_connection(self):
        """Get DuckDB connection"""
        return connect_duckdb(self.db_path)

    def _init_schema(self) -> None:
        conn = self._get_connection()
        conn.execute("CREATE SCHEMA IF NOT EXISTS analytics;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS analytics.search_term_performance (
                row_num INTEGER,
                id VARCHAR,
                search_term VARCHAR,
                campaign_name VARCHAR,
                ad_group_name VARCHAR,
                keyword_text VARCHAR,
                cost DOUBLE,
                clicks BIGINT,
                impressions BIGINT,
                conversions DOUBLE,
                report_date VARCHAR
            );
            """
        )
        conn.close()

    def replace_snapshot(self, rows: Sequence[PerformanceRow]) -> int:
        """
        Replace the whole snapshot with `rows`.

        Raises:
            ValueError: if the snapshot breaks a row invariant (duplicate ids,
                negative metrics, clicks > impressions). The previous snapshot
                is left untouched.

        Returns: number of rows written
        """
        ok, details = validate_snapshot(list(rows))
        if not ok:
            logger.error(f"Rejected performance snapshot: {details}")
            raise ValueError(f"Invalid performance snapshot: {details}")

        conn = self._get_connection()
        try:
            conn.begin()
            conn.execute("DELETE FROM analytics.search_term_performance")
            if rows:
                placeholders = ", ".join(["?"] * len(SEARCH_TERM_COLS))
                conn.executemany(
                    f"INSERT INTO analytics.search_term_performance ({', '.join(SEARCH_TERM_COLS)}) "
                    f"VALUES ({placeholders})",
                    [_row_to_tuple(i, r) for i, r in enumerate(rows, 1)],
                )
            conn.commit()
        except duckdb.Error:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info(f"Performance snapshot replaced: rows={len(rows)}")
        return len(rows)

    def load_rows(self) -> List[PerformanceRow]:
        """Read the snapshot in collector order."""
        conn = self._get_connection()
        cols = ", ".join(SEARCH_TERM_COLS[1:])
        result = conn.execute(
            f"SELECT {cols} FROM analytics.search_term_performance ORDER BY row_num"
        ).fetchall()
        conn.close()

        return [
            PerformanceRow(
                id=r[0],
                search_term=r[1],
                campaign_name=r[2] or "",
                ad_group_name=r[3] or "",
                keyword_text=r[4] or "",
                cost=r[5] or 0.0,
                clicks=r[6] or 0,
                impressions=r[7] or 0,
                conversions=r[8] or 0.0,
                date=r[9],
            )
            for r in result
        ]

    def count(self) -> int:
        conn = self._get_connection()
        result = conn.execute("SELECT COUNT(*) FROM analytics.search_term_performance").fetchone()
        conn.close()
        return result[0] if result else 0
