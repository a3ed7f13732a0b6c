#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
File-backed row store.
Keeps one JSON document per shelf item so the collection survives restarts
without a database.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .store import RowStore


logger = logging.getLogger(__name__)


class JsonRowStore(RowStore):
    """
    Persistent row storage for shelf items.

    Layout:
        <state_path>/items/<id>.json
    """

    def __init__(self, state_path: str = "state"):
        self.state_path = Path(state_path)
        self.items_path = self.state_path / "items"
        self.items_path.mkdir(parents=True, exist_ok=True)
        # Writers run on worker threads; a delete must not interleave with a
        # read-modify-write of the same row
        self._lock = threading.Lock()

    def _row_file(self, item_id: str) -> Path:
        # Ids are generated UUIDs; anything path-like is refused
        if not item_id or "/" in item_id or "\\" in item_id or item_id.startswith("."):
            raise ValueError(f"invalid item id: {item_id!r}")
        return self.items_path / f"{item_id}.json"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Skipping unreadable row %s: %s", path.name, e)
            return None

    def _write(self, row: Dict[str, Any]) -> None:
        path = self._row_file(row["id"])
        tmp = path.with_suffix(".tmp")
        with open(tmp, 'w', encoding='utf-8') as f:
            json.dump(row, f, indent=2, ensure_ascii=False)
        tmp.replace(path)

    # ==================== RowStore ====================

    def select_all(self) -> List[Dict[str, Any]]:
        """All rows, item_order ascending with nulls last"""
        rows = []
        for row_file in self.items_path.glob("*.json"):
            row = self._read(row_file)
            if row and row.get("id"):
                rows.append(row)

        return sorted(rows, key=lambda r: (
            r.get("item_order") is None,
            r.get("item_order") or 0,
            r.get("added_at") or ""
        ))

    def insert(self, row: Dict[str, Any]) -> None:
        with self._lock:
            if self._row_file(row["id"]).exists():
                raise ValueError(f"row {row['id']} already exists")
            self._write(dict(row))

    def update(self, item_id: str, fields: Dict[str, Any]) -> None:
        """Field-level update; a missing row is left missing"""
        path = self._row_file(item_id)
        with self._lock:
            if not path.exists():
                logger.debug("Update for missing row %s ignored", item_id)
                return

            row = self._read(path) or {"id": item_id}
            row.update(fields)
            row["id"] = item_id
            self._write(row)

    def upsert_orders(self, orders: Sequence[Tuple[str, int]]) -> None:
        """Write item_order onto existing rows; ids without a row are skipped"""
        with self._lock:
            for item_id, item_order in orders:
                path = self._row_file(item_id)
                row = self._read(path) if path.exists() else None
                if row is None:
                    logger.debug("Order for missing row %s ignored", item_id)
                    continue
                row["item_order"] = item_order
                self._write(row)

    def delete(self, item_id: str) -> None:
        path = self._row_file(item_id)
        with self._lock:
            if path.exists():
                path.unlink()

    def __repr__(self) -> str:
        return f"JsonRowStore(path={self.state_path})"
