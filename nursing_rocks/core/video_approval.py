"""
Client-side cache of video approval records.

Mutations patch the cache before the server answers. Each patch runs inside
``transaction()``, which restores the previous snapshot when the block
raises, so a failed request never leaves a phantom approval behind.
"""

import copy
import itertools
from collections import OrderedDict
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


_synthetic_ids = itertools.count(1)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _synthetic_record(public_id: str, approved: bool, admin_notes: Optional[str]) -> dict:
    now = _now()
    return {
        # negative ids never collide with database rows
        "id": -next(_synthetic_ids),
        "public_id": public_id,
        "folder": None,
        "approved": approved,
        "approved_by": None,
        "approved_at": now if approved else None,
        "admin_notes": admin_notes,
        "poster_url": None,
        "created_at": now,
        "updated_at": now,
    }


class ApprovalCache:
    def __init__(self, records: Iterable[dict] = ()):
        self._records: "OrderedDict[str, dict]" = OrderedDict()
        self.replace_all(records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, public_id: str) -> bool:
        return public_id in self._records

    def replace_all(self, records: Iterable[dict]) -> None:
        self._records = OrderedDict((r["public_id"], dict(r)) for r in records)

    def records(self) -> List[dict]:
        return list(self._records.values())

    def get(self, public_id: str) -> Optional[dict]:
        return self._records.get(public_id)

    def is_approved(self, public_id: str) -> bool:
        record = self._records.get(public_id)
        return bool(record and record.get("approved"))

    def notes_for(self, public_id: str) -> str:
        record = self._records.get(public_id)
        return (record or {}).get("admin_notes") or ""

    # ==========================================================
    # PATCHES
    # ==========================================================
    def approve(self, public_id: str, admin_notes: Optional[str] = None) -> dict:
        record = self._records.get(public_id)
        if record is None:
            record = _synthetic_record(public_id, True, admin_notes)
            self._records[public_id] = record
            return record

        record["approved"] = True
        record["admin_notes"] = admin_notes or record.get("admin_notes")
        return record

    def unapprove(self, public_id: str) -> dict:
        record = self._records.get(public_id)
        if record is None:
            record = _synthetic_record(public_id, False, None)
            self._records[public_id] = record
            return record

        record["approved"] = False
        return record

    def remove(self, public_id: str) -> Optional[dict]:
        return self._records.pop(public_id, None)

    def merge(self, server_record: dict) -> None:
        """Swap a synthetic record for the server's copy, keeping position."""
        public_id = server_record["public_id"]
        if public_id in self._records:
            self._records[public_id].clear()
            self._records[public_id].update(server_record)
        else:
            self._records[public_id] = dict(server_record)

    # ==========================================================
    # ROLLBACK
    # ==========================================================
    def snapshot(self) -> "OrderedDict[str, dict]":
        return copy.deepcopy(self._records)

    def restore(self, snapshot: "OrderedDict[str, dict]") -> None:
        self._records = snapshot

    @contextmanager
    def transaction(self) -> Iterator["ApprovalCache"]:
        previous = self.snapshot()
        try:
            yield self
        except BaseException:
            self.restore(previous)
            raise


def index_by_public_id(records: Iterable[dict]) -> Dict[str, dict]:
    return {r["public_id"]: r for r in records}


def join_videos(videos: Iterable[dict], records: Iterable[dict]) -> List[Tuple[dict, Optional[dict]]]:
    """Pair each provider video with its approval record (None when pending)."""
    index = index_by_public_id(records)
    return [(video, index.get(video["public_id"])) for video in videos]
