from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from opsdash.normalize import ActivityRecord


logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


@dataclass(frozen=True)
class CacheSnapshot:
    records: List[ActivityRecord]
    fetched_at: datetime


class SnapshotStore:
    """One JSON snapshot per dataset key, overwritten on every successful fetch."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def save(self, key: str, records: Sequence[ActivityRecord], fetched_at: datetime) -> Path:
        payload = {
            "version": SNAPSHOT_VERSION,
            "dataset": key,
            "fetched_at": fetched_at.isoformat(),
            "records": [r.to_dict() for r in records],
        }
        self.base_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{key}.", suffix=".tmp", dir=self.base_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return path

    def load(self, key: str) -> Optional[CacheSnapshot]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            records = [ActivityRecord.from_dict(r) for r in payload.get("records", [])]
            fetched_at = datetime.fromisoformat(payload["fetched_at"])
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable snapshot %s: %s", path, exc)
            return None
        return CacheSnapshot(records=records, fetched_at=fetched_at)

    def clear(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
