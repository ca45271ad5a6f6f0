"""
Processing triggers - advisory "work is available" markers.

The submission path appends a PENDING trigger; the worker marks triggers
COMPLETED after a full scan. The worker never depends on seeing a trigger:
it re-scans the ledger on every scheduled run anyway. Triggers only feed
the processing status summary.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from nk_core.constants import TRIGGER_ACTION_PROCESS, TRIGGER_COMPLETED, TRIGGER_PENDING
from nk_core.models import ProcessingTrigger
from nk_core.storage import connect_duckdb
from nk_ledger.ledger import utcnow

TRIGGER_COLUMNS = ["action", "triggered_at", "status", "message", "processed_date"]


class ProcessingTriggers:
    """Trigger rows in DuckDB (provisioning.processing_triggers)."""

    def __init__(self, db_path: Union[str, Path] = "negatives.duckdb"):
        self.db_path = Path(db_path)
        self._init_schema()

    def _get_connection(self):
        """Get DuckDB connection"""
        return connect_duckdb(self.db_path)

    def _init_schema(self) -> None:
        conn = self._get_connection()
        conn.execute("CREATE SCHEMA IF NOT EXISTS provisioning;")
        conn.execute("CREATE SEQUENCE IF NOT EXISTS provisioning.trigger_seq START 1;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS provisioning.processing_triggers (
                trigger_seq BIGINT DEFAULT nextval('provisioning.trigger_seq'),
                action VARCHAR NOT NULL,
                triggered_at TIMESTAMP NOT NULL,
                status VARCHAR NOT NULL,
                message VARCHAR,
                processed_date TIMESTAMP
            );
            """
        )
        conn.close()

    def add(self, action: str = TRIGGER_ACTION_PROCESS) -> ProcessingTrigger:
        """Append a PENDING trigger."""
        trigger = ProcessingTrigger(action=action, timestamp=utcnow(), status=TRIGGER_PENDING)
        conn = self._get_connection()
        conn.execute(
            "INSERT INTO provisioning.processing_triggers (action, triggered_at, status) VALUES (?, ?, ?)",
            [trigger.action, trigger.timestamp, trigger.status],
        )
        conn.close()
        return trigger

    def complete_pending(self, message: str, before: Optional[datetime] = None) -> int:
        """
        Mark PENDING triggers COMPLETED.

        Args:
            message: Outcome text, e.g. "Processed: 3 successful, 1 failed"
            before: Only complete triggers created at or before this time
                (the worker passes its run start; later triggers belong to the next run)

        Returns: number of triggers completed
        """
        params: List[Any] = [TRIGGER_COMPLETED, message, utcnow(), TRIGGER_PENDING]
        where = "WHERE status = ?"
        if before is not None:
            where += " AND triggered_at <= ?"
            params.append(before)

        conn = self._get_connection()
        completed = conn.execute(
            f"""
            UPDATE provisioning.processing_triggers
            SET status = ?, message = ?, processed_date = ?
            {where}
            RETURNING trigger_seq
            """,
            params,
        ).fetchall()
        conn.close()
        return len(completed)

    def list_all(self) -> List[ProcessingTrigger]:
        conn = self._get_connection()
        results = conn.execute(
            f"SELECT {', '.join(TRIGGER_COLUMNS)} FROM provisioning.processing_triggers ORDER BY trigger_seq"
        ).fetchall()
        conn.close()
        return [
            ProcessingTrigger(action=r[0], timestamp=r[1], status=r[2], message=r[3], processed_date=r[4])
            for r in results
        ]

    def status_summary(self) -> Dict[str, Any]:
        """
        {status: "Up to date" | "Processing pending", lastProcessed, pendingRequests}

        pendingRequests counts PENDING triggers; lastProcessed is the latest
        completion time (ISO string) or None.
        """
        conn = self._get_connection()
        pending, last_processed = conn.execute(
            """
            SELECT
                COUNT(*) FILTER (WHERE status = ?),
                MAX(processed_date) FILTER (WHERE status = ?)
            FROM provisioning.processing_triggers
            """,
            [TRIGGER_PENDING, TRIGGER_COMPLETED],
        ).fetchone()
        conn.close()

        return {
            "status": "Processing pending" if pending > 0 else "Up to date",
            "lastProcessed": last_processed.isoformat() if last_processed else None,
            "pendingRequests": pending,
        }
