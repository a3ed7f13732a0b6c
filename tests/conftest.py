from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest

from shelf.clock import ManualClock
from shelf.models import CollectionItem, ItemKind
from shelf.store import ItemStore, RowStore


class FakeRowStore(RowStore):
    """In-memory row store recording every call"""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None) -> None:
        self.rows: Dict[str, Dict[str, Any]] = {row["id"]: dict(row) for row in rows or []}
        self.calls: List[Tuple[str, Any]] = []
        self.failing: set[str] = set()
        self._lock = threading.Lock()

    def _record(self, name: str, payload: Any) -> None:
        with self._lock:
            self.calls.append((name, payload))
        if name in self.failing:
            raise ConnectionError(f"{name} rejected")

    def calls_to(self, name: str) -> List[Any]:
        return [payload for call, payload in self.calls if call == name]

    def select_all(self) -> List[Dict[str, Any]]:
        self._record("select_all", None)
        return sorted(
            (dict(row) for row in self.rows.values()),
            key=lambda r: (r.get("item_order") is None, r.get("item_order") or 0),
        )

    def insert(self, row: Dict[str, Any]) -> None:
        self._record("insert", row)
        self.rows[row["id"]] = dict(row)

    def update(self, item_id: str, fields: Dict[str, Any]) -> None:
        self._record("update", (item_id, fields))
        if item_id in self.rows:
            self.rows[item_id].update(fields)

    def upsert_orders(self, orders: Sequence[Tuple[str, int]]) -> None:
        self._record("upsert_orders", list(orders))
        for item_id, item_order in orders:
            if item_id in self.rows:
                self.rows[item_id]["item_order"] = item_order

    def delete(self, item_id: str) -> None:
        self._record("delete", item_id)
        self.rows.pop(item_id, None)


def make_item(
    item_id: str,
    added: str = "2024-01-01",
    *,
    kind: ItemKind = ItemKind.ALBUM,
    listened: bool = False,
    listen_again: bool = False,
    manual_order: Optional[int] = None,
    cover_url: Optional[str] = None,
    **fields: Any,
) -> CollectionItem:
    defaults: Dict[str, Any] = {}
    if kind is ItemKind.ARTIST:
        defaults["name"] = f"Artist {item_id}"
    else:
        defaults["title"] = f"Title {item_id}"
        defaults["artist"] = f"Artist {item_id}"
    defaults.update(fields)
    return CollectionItem(
        id=item_id,
        kind=kind,
        added_at=datetime.fromisoformat(added).replace(tzinfo=timezone.utc),
        listened=listened,
        listen_again=listen_again,
        manual_order=manual_order,
        cover_url=cover_url,
        **defaults,
    )


@pytest.fixture
def backend() -> FakeRowStore:
    return FakeRowStore()


@pytest.fixture
def store() -> ItemStore:
    return ItemStore()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=100.0)


def ids(items) -> List[str]:
    return [item.id for item in items]
