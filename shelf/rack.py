#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Rack carousel controller.

The rack shows covered items that are unheard or flagged to hear again,
mounted on a drum. ``position`` counts drum slots and may run past the end
during a shuffle spin; renderers use it modulo the rack length.

Shuffle sequence (each step waits for the previous transition):

    OVERSHOOTING  spin forward to target + 2 or 3 full revolutions
    SNAPPING      jump without animation to the slot after the target
    SETTLING      animate back onto the target
    IDLE          resting on the target

Phases advance in ``tick()`` against the clock, so the host calls it once
per frame and tests move a ManualClock.
"""

import logging
import random
from enum import Enum
from typing import List, Optional, Sequence

from .clock import Clock
from .models import CollectionItem
from .store import ItemStore


logger = logging.getLogger(__name__)


class RackPhase(Enum):
    IDLE = "idle"
    OVERSHOOTING = "overshooting"
    SNAPPING = "snapping"
    SETTLING = "settling"


class RackController:
    """Position and shuffle state for the rack view"""

    def __init__(
        self,
        store: ItemStore,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        spin_duration: float = 2.0,
        settle_duration: float = 0.5,
        revolutions: Sequence[int] = (2, 3),
        gesture_cooldown: float = 0.35
    ):
        """
        Args:
            store: Shelf contents
            clock: Time source for phases and gesture limiting
            rng: Random source for shuffle picks
            spin_duration: Seconds of the overshoot spin transition
            settle_duration: Seconds of the settle-back transition
            revolutions: Choices for the number of full spins
            gesture_cooldown: Minimum seconds between navigation steps
        """
        self.store = store
        self.clock = clock or Clock()
        self.rng = rng or random.Random()
        self.spin_duration = spin_duration
        self.settle_duration = settle_duration
        self.revolutions = tuple(revolutions)
        self.gesture_cooldown = gesture_cooldown

        self.phase = RackPhase.IDLE
        self.position: Optional[int] = None
        self.animated = False
        self.target: Optional[int] = None
        self._target_id: Optional[str] = None
        self._deadline: Optional[float] = None
        self._last_gesture: Optional[float] = None

    # ==================== View ====================

    @property
    def rack_items(self) -> List[CollectionItem]:
        return [item for item in self.store.items if item.on_rack]

    @property
    def shuffling(self) -> bool:
        return self.phase is not RackPhase.IDLE

    @property
    def display_index(self) -> Optional[int]:
        """Slot the drum is showing, or None when unsettled or empty"""
        count = len(self.rack_items)
        if self.position is None or count == 0:
            return None
        if not self.shuffling:
            return min(max(self.position, 0), count - 1)
        return self.position % count

    @property
    def current_item(self) -> Optional[CollectionItem]:
        index = self.display_index
        return self.rack_items[index] if index is not None else None

    def reset(self) -> None:
        """Forget the position; the next render snaps without animation"""
        if not self.shuffling:
            self.position = None
            self.animated = False

    # ==================== Navigation ====================

    def navigate(self, delta: int) -> bool:
        """
        Step one slot left (delta < 0) or right (delta > 0).

        Ignored while shuffling and for inputs arriving within the gesture
        cooldown of the last accepted step.

        Returns:
            True if the position moved
        """
        self.tick()
        if self.shuffling or delta == 0:
            return False

        count = len(self.rack_items)
        if count == 0:
            return False

        now = self.clock.now()
        if self._last_gesture is not None and now - self._last_gesture < self.gesture_cooldown:
            return False
        self._last_gesture = now

        current = self.display_index if self.display_index is not None else 0
        step = 1 if delta > 0 else -1
        new_position = min(max(current + step, 0), count - 1)
        if new_position == self.position:
            return False

        self.position = new_position
        self.animated = True
        return True

    # ==================== Shuffle ====================

    def shuffle(self) -> Optional[int]:
        """
        Spin to a random unheard item.

        Returns:
            Target index in ``rack_items``, or None if a shuffle is already
            running or there is no unheard covered item
        """
        self.tick()
        if self.shuffling:
            return None

        items = self.rack_items
        candidates = [i for i, item in enumerate(items) if not item.listened]
        if not candidates:
            return None

        target = self.rng.choice(candidates)
        count = len(items)
        overshoot = target + self.rng.choice(self.revolutions) * count
        while self.position is not None and overshoot <= self.position:
            overshoot += count

        self.target = target
        self._target_id = items[target].id
        self.position = overshoot
        self.animated = True
        self.phase = RackPhase.OVERSHOOTING
        self._deadline = self.clock.now() + self.spin_duration
        logger.debug("Shuffle to %s (%s), spinning to %s", target, self._target_id, overshoot)
        return target

    def tick(self) -> bool:
        """
        Advance the shuffle by at most one phase.

        The snap is held for exactly one tick so the renderer can draw
        it without a transition before settling.

        Returns:
            True if the phase changed
        """
        if not self.shuffling:
            self._clamp()
            return False

        now = self.clock.now()
        items = self.rack_items
        target = self._locate_target(items)
        if target is None:
            logger.debug("Shuffle target left the rack, stopping")
            self._stop(min(self.display_index or 0, max(len(items) - 1, 0)) if items else None)
            return True
        self.target = target

        if self.phase is RackPhase.OVERSHOOTING:
            if now < self._deadline:
                return False
            self.position = (target + 1) % len(items)
            self.animated = False
            self.phase = RackPhase.SNAPPING
            return True

        if self.phase is RackPhase.SNAPPING:
            self.position = target
            self.animated = True
            self.phase = RackPhase.SETTLING
            self._deadline = now + self.settle_duration
            return True

        if now < self._deadline:
            return False
        self._stop(target)
        return True

    def _clamp(self) -> None:
        # The rack can shrink under a resting position (items listened or removed)
        count = len(self.rack_items)
        if self.position is None:
            return
        if count == 0:
            self.position = None
            self.animated = False
        elif self.position > count - 1:
            self.position = count - 1

    def _locate_target(self, items: List[CollectionItem]) -> Optional[int]:
        for index, item in enumerate(items):
            if item.id == self._target_id:
                return index
        return None

    def _stop(self, position: Optional[int]) -> None:
        self.phase = RackPhase.IDLE
        self.position = position
        self._deadline = None
        self._target_id = None

    def __repr__(self) -> str:
        return f"RackController(phase={self.phase.value}, position={self.position})"
