#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Collection item model and its persisted row mapping.
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ItemKind(Enum):
    """Kind of shelf item, fixed at creation"""
    ALBUM = "album"
    ARTIST = "artist"
    MIX = "mix"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp; unknown values sort as the epoch"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return EPOCH
    else:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class CollectionItem:
    """
    One album, artist or mix on the shelf.

    Items are immutable values. Every change produces a new item through
    ``evolve`` and replaces the old one in the store.
    """
    id: str
    kind: ItemKind
    added_at: datetime
    title: Optional[str] = None
    artist: Optional[str] = None
    year: Optional[str] = None
    release_date: Optional[str] = None
    name: Optional[str] = None
    disambiguation: Optional[str] = None
    source_url: Optional[str] = None
    external_id: Optional[str] = None
    cover_url: Optional[str] = None
    listened: bool = False
    listen_again: bool = False
    manual_order: Optional[int] = None

    @classmethod
    def album(cls, title: str, artist: str, year: Optional[str] = None,
              release_date: Optional[str] = None, external_id: Optional[str] = None) -> 'CollectionItem':
        return cls(id=new_id(), kind=ItemKind.ALBUM, added_at=utcnow(), title=title,
                   artist=artist, year=year, release_date=release_date, external_id=external_id)

    @classmethod
    def artist_entry(cls, name: str, disambiguation: str = "",
                     external_id: Optional[str] = None) -> 'CollectionItem':
        return cls(id=new_id(), kind=ItemKind.ARTIST, added_at=utcnow(), name=name,
                   disambiguation=disambiguation, external_id=external_id)

    @classmethod
    def mix(cls, title: str, artist: str, source_url: str,
            cover_url: Optional[str] = None) -> 'CollectionItem':
        return cls(id=new_id(), kind=ItemKind.MIX, added_at=utcnow(), title=title,
                   artist=artist, source_url=source_url, cover_url=cover_url)

    def evolve(self, **changes: Any) -> 'CollectionItem':
        """Copy with changes; id, kind and added_at cannot change"""
        for frozen in ("id", "kind", "added_at"):
            if frozen in changes and changes[frozen] != getattr(self, frozen):
                raise ValueError(f"{frozen} is immutable")
        return replace(self, **changes)

    @property
    def has_cover(self) -> bool:
        return bool(self.cover_url)

    @property
    def on_rack(self) -> bool:
        """Shown on the rack: covered, and unheard or flagged to hear again"""
        return self.has_cover and (not self.listened or self.listen_again)

    @property
    def label(self) -> str:
        if self.kind is ItemKind.ARTIST:
            return self.name or ""
        return f"{self.artist or ''} - {self.title or ''}".strip(" -")

    # ==================== Row Mapping ====================

    def to_row(self) -> Dict[str, Any]:
        """Persisted row (snake_case columns, empty strings as NULL)"""
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title or None,
            "artist": self.artist or None,
            "name": self.name or None,
            "disambiguation": self.disambiguation or None,
            "year": self.year or None,
            "external_id": self.external_id or None,
            "cover_url": self.cover_url or None,
            "source_url": self.source_url or None,
            "release_date": self.release_date or None,
            "added_at": self.added_at.isoformat(),
            "listened": bool(self.listened),
            "listen_again": bool(self.listen_again),
            "item_order": self.manual_order
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'CollectionItem':
        order = row.get("item_order")
        return cls(
            id=row["id"],
            kind=ItemKind(row.get("kind") or "album"),
            added_at=parse_timestamp(row.get("added_at")),
            title=row.get("title"),
            artist=row.get("artist"),
            year=row.get("year"),
            release_date=row.get("release_date"),
            name=row.get("name"),
            disambiguation=row.get("disambiguation"),
            source_url=row.get("source_url"),
            external_id=row.get("external_id"),
            cover_url=row.get("cover_url"),
            listened=bool(row.get("listened") or False),
            listen_again=bool(row.get("listen_again") or False),
            manual_order=int(order) if order is not None else None
        )


@dataclass(frozen=True)
class SearchResult:
    """A catalog hit the user can pick to add to the shelf"""
    kind: ItemKind
    title: str = ""
    artist: str = ""
    year: str = ""
    name: str = ""
    disambiguation: str = ""
    country: str = ""
    external_id: Optional[str] = None
    cover_url: Optional[str] = None
    source_url: Optional[str] = None

    def to_item(self) -> CollectionItem:
        if self.kind is ItemKind.ARTIST:
            return CollectionItem.artist_entry(self.name, self.disambiguation, self.external_id)
        if self.kind is ItemKind.MIX:
            return CollectionItem.mix(self.title, self.artist, self.source_url or "", self.cover_url)
        return CollectionItem.album(self.title, self.artist, self.year or None,
                                    external_id=self.external_id)


def new_id() -> str:
    return str(uuid.uuid4())
