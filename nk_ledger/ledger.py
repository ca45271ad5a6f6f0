"""
Provisioning Ledger - durable, append-only store of negative keyword requests.

The ledger is the only thing the submission path (producer) and the worker
(consumer) share. Each operation opens its own DuckDB connection, so the two
sides can live in different processes.

Lifecycle of a row:
    append()        -> PENDING, "Waiting for processing"
    mark_outcome()  -> ACTIVE | FAILED (once, worker only)
    remove()        -> deleted, whatever the status
"""

import random
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Union

import duckdb

from nk_core.constants import (
    LEVELS,
    PENDING_MESSAGE,
    STATUS_PENDING,
    TERMINAL_STATUSES,
)
from nk_core.errors import (
    AdmissionError,
    InvalidTransitionError,
    RequestNotFoundError,
    StorageUnavailableError,
)
from nk_core.logging_config import setup_logging
from nk_core.models import AppendResult, KeywordSubmission, NegativeKeywordRequest
from nk_core.storage import connect_duckdb

logger = setup_logging(__name__)

REQUEST_COLUMNS = [
    "id",
    "keyword_text",
    "match_type",
    "level",
    "campaign_id",
    "campaign_name",
    "ad_group_id",
    "ad_group_name",
    "shared_list_id",
    "shared_list_name",
    "added_date",
    "status",
    "message",
    "processed_date",
]

_ID_ALPHABET = string.digits + string.ascii_lowercase


def utcnow() -> datetime:
    """Naive UTC timestamp (DuckDB TIMESTAMP columns are naive)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def generate_request_id() -> str:
    """new_<epoch ms>_<9 random base36 chars>"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"new_{int(time.time() * 1000)}_{suffix}"


def _row_to_request(row) -> NegativeKeywordRequest:
    return NegativeKeywordRequest(**dict(zip(REQUEST_COLUMNS, row)))


def _submission_values(request_id: str, sub: KeywordSubmission, added_date: datetime) -> list:
    target = sub.target
    return [
        request_id,
        sub.keyword_text,
        sub.match_type,
        target.level,
        getattr(target, "campaign_id", None),
        getattr(target, "campaign_name", None),
        getattr(target, "ad_group_id", None),
        getattr(target, "ad_group_name", None),
        getattr(target, "shared_list_id", None),
        getattr(target, "shared_list_name", None),
        added_date,
        STATUS_PENDING,
        PENDING_MESSAGE,
        None,
    ]


class ProvisioningLedger:
    """Negative keyword requests in DuckDB (provisioning.negative_keyword_requests)."""

    def __init__(
        self,
        db_path: Union[str, Path] = "negatives.duckdb",
        id_factory: Callable[[], str] = generate_request_id,
    ):
        self.db_path = Path(db_path)
        self._new_id = id_factory
        self._init_schema()

    def _get_connection(self):
        """Get DuckDB connection (retries while another process holds the lock)"""
        return connect_duckdb(self.db_path)

    def _init_schema(self) -> None:
        conn = self._get_connection()
        conn.execute("CREATE SCHEMA IF NOT EXISTS provisioning;")
        conn.execute("CREATE SEQUENCE IF NOT EXISTS provisioning.request_seq START 1;")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS provisioning.negative_keyword_requests (
                ledger_seq BIGINT DEFAULT nextval('provisioning.request_seq'),
                id VARCHAR PRIMARY KEY,
                keyword_text VARCHAR NOT NULL,
                match_type VARCHAR NOT NULL,
                level VARCHAR NOT NULL,
                campaign_id VARCHAR,
                campaign_name VARCHAR,
                ad_group_id VARCHAR,
                ad_group_name VARCHAR,
                shared_list_id VARCHAR,
                shared_list_name VARCHAR,
                added_date TIMESTAMP NOT NULL,
                status VARCHAR NOT NULL,
                message VARCHAR,
                processed_date TIMESTAMP
            );
            """
        )
        conn.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, submissions: Sequence[KeywordSubmission]) -> AppendResult:
        """
        Append validated submissions as new PENDING rows.

        Each row is inserted on its own, so a storage failure on one item is
        reported in AppendResult.failures and the other items still land.
        If the file stays locked by another process, every item is reported
        as failed instead of raising. Existing rows are never touched.
        """
        result = AppendResult()
        if not submissions:
            return result

        placeholders = ", ".join(["?"] * len(REQUEST_COLUMNS))
        insert_sql = (
            f"INSERT INTO provisioning.negative_keyword_requests ({', '.join(REQUEST_COLUMNS)}) "
            f"VALUES ({placeholders})"
        )

        try:
            conn = self._get_connection()
        except StorageUnavailableError as e:
            logger.error(f"Admission failed for {len(submissions)} requests: {e}")
            result.failures = [
                (position, AdmissionError(str(e))) for position in range(len(submissions))
            ]
            return result

        try:
            for position, sub in enumerate(submissions):
                request_id = self._new_id()
                values = _submission_values(request_id, sub, utcnow())
                try:
                    conn.execute(insert_sql, values)
                except duckdb.Error as e:
                    logger.error(f"Admission failed for '{sub.keyword_text}': {e}")
                    result.failures.append((position, AdmissionError(str(e))))
                    continue
                result.requests.append(_row_to_request(values))
        finally:
            conn.close()

        logger.info(f"Ledger append: added={result.added}, failed={result.failed}")
        return result

    def mark_outcome(self, request_id: str, status: str, message: str) -> NegativeKeywordRequest:
        """
        Record the worker's outcome for a PENDING request.

        Raises:
            ValueError: status is not ACTIVE or FAILED
            RequestNotFoundError: no row with this id
            InvalidTransitionError: the row already left PENDING
            StorageUnavailableError: the file stayed locked by another process
        """
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Invalid outcome status: {status}")

        conn = self._get_connection()
        try:
            updated = conn.execute(
                f"""
                UPDATE provisioning.negative_keyword_requests
                SET status = ?, message = ?, processed_date = ?
                WHERE id = ? AND status = ?
                RETURNING {', '.join(REQUEST_COLUMNS)}
                """,
                [status, message, utcnow(), request_id, STATUS_PENDING],
            ).fetchone()

            if updated is None:
                existing = conn.execute(
                    "SELECT status FROM provisioning.negative_keyword_requests WHERE id = ?",
                    [request_id],
                ).fetchone()
                if existing is None:
                    raise RequestNotFoundError(f"Request not found: {request_id}")
                raise InvalidTransitionError(
                    f"Request {request_id} is already {existing[0]}"
                )
        finally:
            conn.close()

        return _row_to_request(updated)

    def remove(self, request_id: str) -> bool:
        """Delete a request regardless of status. Returns False if not found."""
        conn = self._get_connection()
        deleted = conn.execute(
            "DELETE FROM provisioning.negative_keyword_requests WHERE id = ? RETURNING id",
            [request_id],
        ).fetchall()
        conn.close()

        if deleted:
            logger.info(f"Removed request {request_id}")
        return len(deleted) > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _select(self, where: str = "", params: Optional[list] = None) -> List[NegativeKeywordRequest]:
        conn = self._get_connection()
        results = conn.execute(
            f"""
            SELECT {', '.join(REQUEST_COLUMNS)}
            FROM provisioning.negative_keyword_requests
            {where}
            ORDER BY ledger_seq
            """,
            params or [],
        ).fetchall()
        conn.close()
        return [_row_to_request(r) for r in results]

    def list_pending(self) -> List[NegativeKeywordRequest]:
        """All PENDING rows in ledger (append) order."""
        return self._select("WHERE status = ?", [STATUS_PENDING])

    def list_all(self) -> List[NegativeKeywordRequest]:
        return self._select()

    def list_by_level(self, level: str) -> List[NegativeKeywordRequest]:
        if level not in LEVELS:
            raise ValueError(f"Invalid level: {level}")
        return self._select("WHERE level = ?", [level])

    def get(self, request_id: str) -> Optional[NegativeKeywordRequest]:
        rows = self._select("WHERE id = ?", [request_id])
        return rows[0] if rows else None

    def count_by_status(self) -> Dict[str, int]:
        conn = self._get_connection()
        results = conn.execute(
            """
            SELECT status, COUNT(*)
            FROM provisioning.negative_keyword_requests
            GROUP BY status
            """
        ).fetchall()
        conn.close()
        return {status: count for status, count in results}
