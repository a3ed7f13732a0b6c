#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Drag-to-reorder session.

One gesture moves through IDLE -> DRAGGING -> COMMITTING -> IDLE.
Hovering reorders the shelf live without touching manual orders; releasing
the item always commits whatever order is on screen. There is no cancel.
"""

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Tuple

from .clock import Clock
from .errors import ReorderError
from .models import CollectionItem
from .store import ItemStore, RowStore


logger = logging.getLogger(__name__)

Point = Tuple[float, float]


class DragState(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"


class ReorderSession:
    """
    State for one drag gesture over the shelf.

    Args:
        store: Shelf contents, previewed and committed in place
        backend: Row store receiving the committed order
        clock: Time source for hover throttling
        throttle: Minimum seconds between applied hover moves
    """

    def __init__(self, store: ItemStore, backend: RowStore, clock: Optional[Clock] = None, throttle: float = 0.1):
        self.store = store
        self.backend = backend
        self.clock = clock or Clock()
        self.throttle = throttle
        self._reset()

    def _reset(self) -> None:
        self.state = DragState.IDLE
        self.item_id: Optional[str] = None
        self.origin_index: Optional[int] = None
        self.current_index: Optional[int] = None
        self.offset: Point = (0.0, 0.0)
        self.pointer: Point = (0.0, 0.0)
        self._last_move: Optional[float] = None

    @property
    def dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    @property
    def preview_position(self) -> Point:
        """Top-left corner of the floating copy under the pointer"""
        return (self.pointer[0] - self.offset[0], self.pointer[1] - self.offset[1])

    def begin(self, item_id: str, origin_index: int, pointer: Point = (0.0, 0.0), origin: Point = (0.0, 0.0)) -> None:
        """
        Grab an item.

        Args:
            item_id: Grabbed item
            origin_index: Index the item was grabbed at
            pointer: Pointer position at grab time
            origin: Top-left corner of the grabbed tile
        """
        if self.state is not DragState.IDLE:
            raise ReorderError(f"cannot begin a drag while {self.state.value}")

        index = self.store.index_of(item_id)
        if index < 0:
            raise ReorderError(f"item {item_id} is not on the shelf")
        if index != origin_index:
            logger.debug("Grab index %s differs from shelf index %s", origin_index, index)

        self.state = DragState.DRAGGING
        self.item_id = item_id
        self.origin_index = origin_index
        self.current_index = index
        self.offset = (pointer[0] - origin[0], pointer[1] - origin[1])
        self.pointer = pointer
        self._last_move = None

    def track(self, pointer: Point) -> None:
        """Follow the pointer with the floating copy"""
        if self.dragging:
            self.pointer = pointer

    def hover(self, target_index: int) -> bool:
        """
        Preview the grabbed item at ``target_index``.

        Returns:
            True if the shelf was rearranged
        """
        if not self.dragging or target_index == self.current_index:
            return False
        if not 0 <= target_index < len(self.store):
            return False

        now = self.clock.now()
        if self._last_move is not None and now - self._last_move < self.throttle:
            return False

        working = list(self.store.items)
        index = next((i for i, item in enumerate(working) if item.id == self.item_id), -1)
        if index < 0:
            # Removed mid-drag; nothing left to move
            return False

        moved = working.pop(index)
        working.insert(target_index, moved)
        self.store.replace_all(working, resort=False)

        self.current_index = target_index
        self._last_move = now
        return True

    async def end(self) -> List[CollectionItem]:
        """
        Release the item and commit the on-screen order.

        Every item gets ``manual_order`` equal to its position. The batch
        is persisted once; a failed write is logged and the in-memory
        order stands.

        Returns:
            The committed items in drag order (empty if not dragging)
        """
        if not self.dragging:
            return []

        self.state = DragState.COMMITTING
        try:
            committed = [item.evolve(manual_order=index) for index, item in enumerate(self.store.items)]
            self.store.replace_all(committed)

            orders = [(item.id, item.manual_order) for item in committed]
            try:
                await asyncio.to_thread(self.backend.upsert_orders, orders)
            except Exception as e:
                logger.error("Failed to save order: %s", e)
            return committed
        finally:
            self._reset()

    def __repr__(self) -> str:
        return f"ReorderSession(state={self.state.value}, item={self.item_id}, index={self.current_index})"
