#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Shelf - the collection engine facade.

Owns the item store and wires it to the row store, the artwork pipeline,
the drag reorder session and the rack controller.

Usage:
    from shelf import ConfigManager, Shelf

    shelf = Shelf.from_config(ConfigManager('shelf-config.yaml'))
    await shelf.load()
    await shelf.add_manual('Radiohead - OK Computer')
    await shelf.artwork.wait_idle()
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from sources import (
    AudioDBSource,
    DiscogsSource,
    MixcloudSource,
    MusicBrainzSource,
    WikimediaSource,
    check_reachable,
    iTunesSource,
)

from .artwork import ArtworkPipeline, build_providers
from .clock import Clock
from .config import ConfigManager
from .models import CollectionItem, ItemKind, SearchResult
from .rack import RackController
from .reorder import ReorderSession
from .state import JsonRowStore
from .store import ItemStore, RowStore


logger = logging.getLogger(__name__)

URL_PATTERN = re.compile(r'^https?://\S+$', re.IGNORECASE)


@dataclass
class ImportSummary:
    """Outcome of a bulk import"""
    lines: int
    imported: int

    @property
    def message(self) -> str:
        return f"Successfully imported {self.imported} item(s)!"


def parse_entry(text: str) -> Dict[str, str]:
    """
    Split manual entry text into artist and title.

    "Artist - Title" gives both; text without a separator is an artist.
    Only the first separator splits, the rest stays in the title.

    Returns:
        {"artist": ...} or {"artist": ..., "title": ...}
    """
    text = text.strip()
    separator = " - " if " - " in text else "-"
    parts = [part.strip() for part in text.split(separator)]
    artist = parts[0]
    title = " - ".join(p for p in parts[1:] if p)
    if len(parts) == 1 or not artist or not title:
        return {"artist": text}
    return {"artist": artist, "title": title}


class Shelf:
    """
    Central coordinator for the shelf.

    All methods run on one event loop; blocking catalog and row store
    calls are pushed to worker threads.
    """

    def __init__(
        self,
        backend: RowStore,
        pipeline: Optional[ArtworkPipeline] = None,
        store: Optional[ItemStore] = None,
        catalog: Optional[MusicBrainzSource] = None,
        mixes: Optional[MixcloudSource] = None,
        config: Optional[ConfigManager] = None,
        clock: Optional[Clock] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        """
        Args:
            backend: Persisted rows
            pipeline: Artwork resolution; built over ``store`` when omitted
            store: Shelf contents (shared with ``pipeline`` if both given)
            catalog: Release group / artist search
            mixes: Mix search and URL resolution
            config: Settings (defaults when omitted)
            clock: Time source for throttles and animation
            sleep: Awaitable delay used between bulk import lines
        """
        self.config = config or ConfigManager.from_dict({})
        if store is None:
            store = pipeline.store if pipeline is not None else ItemStore()
        self.store = store
        self.backend = backend
        self.artwork = pipeline if pipeline is not None else ArtworkPipeline(self.store, backend)
        self.catalog = catalog
        self.mixes = mixes
        self.clock = clock or Clock()
        self._sleep = sleep

        self.reorder = ReorderSession(
            self.store, backend, clock=self.clock,
            throttle=self.config.reorder_throttle
        )
        self.rack = RackController(
            self.store, clock=self.clock,
            spin_duration=self.config.rack_spin_seconds,
            settle_duration=self.config.rack_settle_seconds,
            revolutions=self.config.rack_revolutions,
            gesture_cooldown=self.config.rack_gesture_cooldown
        )

    @classmethod
    def from_config(cls, config: ConfigManager, backend: Optional[RowStore] = None) -> 'Shelf':
        """Build a shelf over the real catalogs"""
        user_agent = config.user_agent
        musicbrainz = MusicBrainzSource(
            user_agent=user_agent,
            rate_limit=config.get('api.musicbrainz.rate_limit', 1.0)
        )
        itunes = iTunesSource(
            country=config.get('api.itunes.country', 'us'),
            user_agent=user_agent,
            rate_limit=config.get('api.itunes.rate_limit', 0.05)
        )
        discogs = DiscogsSource(
            token=config.discogs_token,
            user_agent=user_agent,
            rate_limit=config.get('api.discogs.rate_limit', 2.4)
        )
        mixcloud = MixcloudSource(user_agent=user_agent)
        providers = build_providers(
            musicbrainz, itunes, discogs,
            AudioDBSource(user_agent=user_agent),
            WikimediaSource(user_agent=user_agent),
            mixcloud
        )

        backend = backend or JsonRowStore(config.state_path)
        store = ItemStore()
        pipeline = ArtworkPipeline(
            store, backend,
            album_providers=providers["album"],
            artist_providers=providers["artist"],
            mix_providers=providers["mix"],
            find_artist_id=musicbrainz.find_artist_id,
            reachable=check_reachable
        )
        return cls(backend, pipeline, store=store, catalog=musicbrainz, mixes=mixcloud, config=config)

    @property
    def items(self):
        return self.store.items

    # ==================== Loading ====================

    async def load(self) -> int:
        """
        Read every row and sort it for display.

        Returns:
            Number of items loaded (0 if the row store is unreachable)
        """
        try:
            rows = await asyncio.to_thread(self.backend.select_all)
        except Exception as e:
            logger.error("Failed to load items: %s", e)
            return 0

        items = []
        for row in rows:
            try:
                items.append(CollectionItem.from_row(row))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping malformed row %s: %s", row.get("id"), e)

        self.store.replace_all(items)
        logger.info("Loaded %d items", len(items))
        return len(items)

    # ==================== Search ====================

    async def search(self, text: str) -> List[SearchResult]:
        """
        Albums, then artists, then mixes matching ``text``.

        Input shorter than two characters or spanning lines is a bulk
        entry, not a query, and returns nothing.
        """
        if "\n" in text or len(text.strip()) < 2:
            return []

        query = text.strip()
        albums, artists, mixes = await asyncio.gather(
            self._call(self.catalog.search_release_groups if self.catalog else None, query),
            self._call(self.catalog.search_artists if self.catalog else None, query),
            self._call(self.mixes.search if self.mixes else None, query)
        )

        results = [
            SearchResult(
                kind=ItemKind.ALBUM,
                title=hit.title,
                artist=hit.artist or "Unknown Artist",
                year=hit.year or "",
                external_id=hit.source_id
            )
            for hit in albums or []
        ]
        results += [
            SearchResult(
                kind=ItemKind.ARTIST,
                name=hit.name,
                disambiguation=hit.disambiguation,
                country=hit.country,
                external_id=hit.mbid
            )
            for hit in artists or []
        ]
        results += [
            SearchResult(
                kind=ItemKind.MIX,
                title=mix.title,
                artist=mix.artist,
                cover_url=mix.cover_url,
                source_url=mix.source_url
            )
            for mix in mixes or []
        ]
        return results

    async def _call(self, func: Optional[Callable[..., Any]], *args: Any) -> Any:
        """Run a blocking catalog call; failures read as no result"""
        if func is None:
            return None
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            logger.warning("Catalog call %s failed: %s", getattr(func, "__name__", func), e)
            return None

    # ==================== Adding ====================

    async def add_item(self, item: CollectionItem) -> CollectionItem:
        """
        Persist and shelve a new item, then look for its cover.

        A failed insert is logged; the item stays on the shelf.
        """
        try:
            await asyncio.to_thread(self.backend.insert, item.to_row())
        except Exception as e:
            logger.error("Failed to save %s: %s", item.label, e)

        self.store.add(item)
        if not item.has_cover:
            self.artwork.schedule(item)
        return item

    async def add_search_result(self, result: SearchResult) -> CollectionItem:
        return await self.add_item(result.to_item())

    async def add_album(self, title: str, artist: str, year: Optional[str] = None,
                        external_id: Optional[str] = None) -> CollectionItem:
        return await self.add_item(CollectionItem.album(title, artist, year, external_id=external_id))

    async def add_artist(self, name: str, disambiguation: str = "",
                         external_id: Optional[str] = None) -> CollectionItem:
        return await self.add_item(CollectionItem.artist_entry(name, disambiguation, external_id))

    async def add_mix(self, url: str) -> Optional[CollectionItem]:
        """Resolve a mix page URL and shelve it; None if it does not resolve"""
        info = await self._call(self.mixes.resolve if self.mixes else None, url)
        if not info:
            logger.info("Could not resolve mix %s", url)
            return None
        return await self.add_item(CollectionItem.mix(info.title, info.artist, info.source_url, info.cover_url))

    async def import_entry(self, text: str) -> Optional[CollectionItem]:
        """
        Add one line of manual input.

        - a URL becomes a mix
        - "Artist - Title" becomes an album, with catalog metadata when the
          catalog knows it, otherwise as typed with year "TBA"
        - anything else becomes an artist
        """
        text = text.strip()
        if not text:
            return None

        if URL_PATTERN.match(text):
            return await self.add_mix(text)

        entry = parse_entry(text)
        if "title" not in entry:
            return await self.add_artist(entry["artist"])

        artist, title = entry["artist"], entry["title"]
        hit = await self._call(self.catalog.find_release_group if self.catalog else None, artist, title)
        if hit:
            return await self.add_album(
                hit.title or title,
                hit.artist or artist,
                hit.year or "TBA",
                external_id=hit.source_id or None
            )
        return await self.add_album(title, artist, "TBA")

    async def bulk_import(self, lines: List[str]) -> ImportSummary:
        """
        Import lines one at a time with a fixed pause between them.

        Sequential on purpose: the catalog allows one request per second.
        """
        entries = [line.strip() for line in lines if line.strip()]
        imported = 0
        for index, line in enumerate(entries):
            if index:
                await self._sleep(self.config.import_delay)
            if await self.import_entry(line):
                imported += 1
            logger.info("[%d/%d] imported %s", index + 1, len(entries), line)

        summary = ImportSummary(lines=len(entries), imported=imported)
        logger.info(summary.message)
        return summary

    async def add_manual(self, text: str) -> Union[ImportSummary, CollectionItem, None]:
        """Manual entry box: several lines are a bulk import"""
        lines = [line.strip() for line in text.split("\n") if line.strip()]
        if not lines:
            return None
        if len(lines) > 1:
            return await self.bulk_import(lines)
        return await self.import_entry(lines[0])

    # ==================== Updating ====================

    async def _update(self, item_id: str, fields: Dict[str, Any]) -> Optional[CollectionItem]:
        try:
            await asyncio.to_thread(self.backend.update, item_id, dict(fields))
        except Exception as e:
            logger.error("Failed to update %s: %s", item_id, e)
        return self.store.patch(item_id, **fields)

    async def toggle_listened(self, item_id: str) -> Optional[CollectionItem]:
        item = self.store.get(item_id)
        if item is None:
            return None
        return await self._update(item_id, {"listened": not item.listened})

    async def toggle_listen_again(self, item_id: str) -> Optional[CollectionItem]:
        item = self.store.get(item_id)
        if item is None:
            return None
        return await self._update(item_id, {"listen_again": not item.listen_again})

    async def remove(self, item_id: str) -> bool:
        """Delete an item from the shelf, the artwork bookkeeping and the rows"""
        removed = self.store.remove(item_id)
        self.artwork.forget(item_id)
        try:
            await asyncio.to_thread(self.backend.delete, item_id)
        except Exception as e:
            logger.error("Failed to delete %s: %s", item_id, e)
        return removed is not None

    async def retry_artwork(self, item_id: str) -> Optional[str]:
        """Run the cover chain again for an item that has none"""
        item = self.store.get(item_id)
        if item is None or item.has_cover:
            return None
        return await self.artwork.resolve(item)

    def __repr__(self) -> str:
        return f"Shelf(items={len(self.store)}, backend={self.backend!r})"
