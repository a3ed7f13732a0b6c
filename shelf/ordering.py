#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Display ordering for the shelf.

Unlistened items come first. Inside each group, items that both carry a
manual order keep it; any other pair is ordered newest first.
"""

from functools import cmp_to_key
from typing import Iterable, List

from .models import CollectionItem


def compare(a: CollectionItem, b: CollectionItem) -> int:
    if a.listened != b.listened:
        return 1 if a.listened else -1
    if a.manual_order is not None and b.manual_order is not None:
        return (a.manual_order > b.manual_order) - (a.manual_order < b.manual_order)
    return (a.added_at < b.added_at) - (a.added_at > b.added_at)


def order(items: Iterable[CollectionItem]) -> List[CollectionItem]:
    """Sorted copy of ``items``; ties keep their input order"""
    return sorted(items, key=cmp_to_key(compare))
