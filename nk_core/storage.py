"""
DuckDB connections shared by the API and worker processes.

DuckDB takes a file lock per process, so a connection attempt fails with
duckdb.IOException while another process has the file open. Every store
opens short-lived connections through connect_duckdb(), which retries the
lock with exponential backoff before giving up.
"""

import time
from pathlib import Path
from typing import Callable, Union

import duckdb

from nk_core.constants import LOCK_BASE_DELAY_SECONDS, LOCK_MAX_RETRIES
from nk_core.errors import StorageUnavailableError
from nk_core.logging_config import setup_logging

logger = setup_logging(__name__)


def connect_duckdb(
    db_path: Union[str, Path],
    max_retries: int = LOCK_MAX_RETRIES,
    base_delay: float = LOCK_BASE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Open a DuckDB connection, waiting out a lock held by another process.

    Raises:
        StorageUnavailableError: the file was still locked after max_retries attempts
    """
    last_error = None
    for attempt in range(max_retries):
        try:
            return duckdb.connect(str(db_path))
        except duckdb.IOException as e:
            last_error = e
            if attempt < max_retries - 1:
                delay = base_delay * (2 ** attempt)
                logger.warning(
                    f"DuckDB locked (attempt {attempt + 1}/{max_retries}): {e}. "
                    f"Retrying in {delay:.2f}s"
                )
                sleep(delay)

    raise StorageUnavailableError(f"Storage unavailable: {last_error}") from last_error
