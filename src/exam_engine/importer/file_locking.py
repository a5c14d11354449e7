"""
Module: importer.file_locking

Purpose:
    Cross-platform file locking for diagnostics reports written by parallel
    importers. Uses portalocker for Mac, Windows, and Linux compatibility.

Key Functions:
    - locked_file: Context manager for locked file access
    - locked_append_jsonl: Append records to JSONL with exclusive lock
    - locked_read_jsonl: Read a JSONL file under a shared lock

Dependencies:
    - portalocker: Cross-platform file locking

Used By:
    - importer.diagnostics: Report writing
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Iterable, List

import portalocker

logger = logging.getLogger(__name__)


@contextmanager
def locked_file(
    path: Path,
    mode: str = 'r',
    lock_type: int = portalocker.LOCK_EX,
) -> Generator:
    """
    Context manager for cross-platform locked file access.

    Args:
        path: Path to file.
        mode: File open mode ('r', 'a', ...).
        lock_type: LOCK_EX for writers, LOCK_SH for readers.

    Yields:
        Open file handle with lock held.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    if 'r' in mode and not path.exists():
        path.touch()

    with open(path, mode, encoding='utf-8') as f:
        portalocker.lock(f, lock_type)
        try:
            yield f
        finally:
            portalocker.unlock(f)


def locked_append_jsonl(path: Path, records: Iterable[Dict[str, Any]]) -> int:
    """
    Append records to a JSONL file while holding one exclusive lock.

    All records of one call land contiguously even when several importers
    share the file.

    Returns:
        Number of records written.
    """
    count = 0
    with locked_file(path, 'a', portalocker.LOCK_EX) as f:
        for record in records:
            f.write(json.dumps(record, ensure_ascii=False) + '\n')
            count += 1

    logger.debug(f"Appended {count} record(s) to {path.name}")
    return count


def locked_read_jsonl(path: Path) -> List[Dict[str, Any]]:
    """Read every record of a JSONL file under a shared lock."""
    records = []
    with locked_file(path, 'r', portalocker.LOCK_SH) as f:
        for line in f:
            line = line.strip()
            if line:
                records.append(json.loads(line))
    return records
