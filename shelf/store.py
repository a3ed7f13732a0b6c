#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
In-memory item store and the persisted row store interface.

The store holds the shelf in display order. It is only ever changed by
replacing the whole sequence, after which the ordering policy is applied
again, so a late writer always sorts against current state.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import DuplicateItemError
from .models import CollectionItem
from .ordering import order


logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[CollectionItem, ...]], None]


class RowStore(ABC):
    """
    Persisted backend, one row per item keyed by id.

    Implementations may raise on any call; callers log and carry on.
    """

    @abstractmethod
    def select_all(self) -> List[Dict[str, Any]]:
        """All rows ordered by item_order ascending, nulls last"""
        pass

    @abstractmethod
    def insert(self, row: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def update(self, item_id: str, fields: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def upsert_orders(self, orders: Sequence[Tuple[str, int]]) -> None:
        """Write item_order for many ids in one batch; ids without a row are skipped"""
        pass

    @abstractmethod
    def delete(self, item_id: str) -> None:
        pass


class ItemStore:
    """Ordered shelf contents"""

    def __init__(self, items: Iterable[CollectionItem] = ()):
        self._items: Tuple[CollectionItem, ...] = ()
        self._listeners: List[Listener] = []
        self.replace_all(items)

    @property
    def items(self) -> Tuple[CollectionItem, ...]:
        return self._items

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call ``listener`` with the new sequence after every change.

        Returns:
            Function removing the listener
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def replace_all(self, items: Iterable[CollectionItem], resort: bool = True) -> None:
        """
        Replace the whole shelf.

        Args:
            items: New contents
            resort: Apply the ordering policy; a drag preview passes False
                to show its working order as-is
        """
        items = list(items)
        ids = [item.id for item in items]
        if len(set(ids)) != len(ids):
            raise DuplicateItemError("item ids must be unique")

        self._items = tuple(order(items) if resort else items)
        for listener in list(self._listeners):
            listener(self._items)

    def get(self, item_id: str) -> Optional[CollectionItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def index_of(self, item_id: str) -> int:
        for index, item in enumerate(self._items):
            if item.id == item_id:
                return index
        return -1

    def add(self, item: CollectionItem) -> None:
        if item.id in self:
            raise DuplicateItemError(f"item {item.id} already on the shelf")
        self.replace_all(self._items + (item,))

    def patch(self, item_id: str, **changes: Any) -> Optional[CollectionItem]:
        """
        Replace one item with an updated copy.

        Returns:
            The new item, or None if the id is not on the shelf (it is
            never re-added)
        """
        current = self.get(item_id)
        if current is None:
            return None

        updated = current.evolve(**changes)
        self.replace_all(updated if item.id == item_id else item for item in self._items)
        return updated

    def remove(self, item_id: str) -> Optional[CollectionItem]:
        removed = self.get(item_id)
        if removed is not None:
            self.replace_all(item for item in self._items if item.id != item_id)
        return removed

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    def __iter__(self) -> Iterator[CollectionItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ItemStore(items={len(self._items)})"
