#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Artwork resolution pipeline.

Finds a cover image for a shelf item by asking an ordered list of
providers, stopping at the first candidate that is actually reachable.

    Album:  Cover Art Archive -> iTunes -> Discogs
    Artist: (MBID lookup) -> TheAudioDB -> MusicBrainz/Wikidata/Commons
    Mix:    oEmbed cover

Providers are plain blocking callables; they run through
``asyncio.to_thread`` so a slow catalog never stalls the event loop.
Every store mutation happens back on the loop.

Usage:
    pipeline = ArtworkPipeline(store, backend, album_providers=[...])
    pipeline.schedule(item)          # fire and forget
    await pipeline.wait_idle()
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Set, Tuple

from sources.base import check_reachable

from .models import CollectionItem, ItemKind
from .store import ItemStore, RowStore


logger = logging.getLogger(__name__)


class ResolutionStatus(Enum):
    """Per-item resolution state"""
    FETCHING = "fetching"
    RESOLVED = "resolved"
    FAILED = "failed"


class Provider(NamedTuple):
    """
    One step of a fallback chain.

    ``fetch`` takes the chain's arguments ((artist, title) for albums,
    (name, external_id) for artists, (source_url,) for mixes) and returns
    a candidate URL or None.
    """
    name: str
    fetch: Callable[..., Optional[str]]


class ArtworkPipeline:
    """
    Resolves covers for shelf items without blocking the caller.

    At most one chain runs per item id. Calling an entry point again while
    that id is being fetched does nothing.
    """

    def __init__(
        self,
        store: ItemStore,
        backend: RowStore,
        album_providers: Sequence[Provider] = (),
        artist_providers: Sequence[Provider] = (),
        mix_providers: Sequence[Provider] = (),
        find_artist_id: Optional[Callable[[str], Optional[str]]] = None,
        reachable: Callable[[str], bool] = check_reachable
    ):
        """
        Args:
            store: Shelf contents to update on success
            backend: Persisted rows to update on success
            album_providers: Album chain, highest priority first
            artist_providers: Artist chain, highest priority first
            mix_providers: Mix chain
            find_artist_id: Name -> catalog id, used when an artist has none
            reachable: Check applied to every candidate URL
        """
        self.store = store
        self.backend = backend
        self.album_providers = list(album_providers)
        self.artist_providers = list(artist_providers)
        self.mix_providers = list(mix_providers)
        self.find_artist_id = find_artist_id
        self.reachable = reachable
        self._status: Dict[str, ResolutionStatus] = {}
        self._tasks: Set[asyncio.Task] = set()

    # ==================== Bookkeeping ====================

    def status(self, item_id: str) -> Optional[ResolutionStatus]:
        return self._status.get(item_id)

    def is_fetching(self, item_id: str) -> bool:
        return self._status.get(item_id) is ResolutionStatus.FETCHING

    @property
    def fetching(self) -> Set[str]:
        return {k for k, v in self._status.items() if v is ResolutionStatus.FETCHING}

    def forget(self, item_id: str) -> None:
        """Drop bookkeeping for a removed item"""
        self._status.pop(item_id, None)

    def _begin(self, item_id: str) -> bool:
        if self.is_fetching(item_id):
            logger.debug("Resolution already in flight for %s", item_id)
            return False
        self._status[item_id] = ResolutionStatus.FETCHING
        return True

    def _finish(self, item_id: str, resolved: bool) -> None:
        if item_id not in self.store:
            self._status.pop(item_id, None)
            return
        self._status[item_id] = ResolutionStatus.RESOLVED if resolved else ResolutionStatus.FAILED

    # ==================== Entry Points ====================

    async def resolve_album_art(self, artist: str, title: str, item_id: str) -> Optional[str]:
        """
        Run the album chain for one item.

        Returns:
            The cover URL written to the item, or None (already fetching,
            nothing found, or the item was removed meanwhile)
        """
        if not self._begin(item_id):
            return None

        applied = False
        try:
            hit = await self.first_success(self.album_providers, artist, title)
            if hit:
                applied = await self._apply(item_id, {"cover_url": hit[1]})
                return hit[1] if applied else None
            logger.info("No album art for %s - %s", artist, title)
            return None
        finally:
            self._finish(item_id, applied)

    async def resolve_artist_image(self, name: str, external_id: Optional[str], item_id: str) -> Optional[str]:
        """
        Run the artist chain for one item.

        A catalog id found on the way is stored even when no image is.
        """
        if not self._begin(item_id):
            return None

        applied = False
        try:
            known_id = external_id or await self._lookup_artist_id(name)
            discovered = known_id if known_id and known_id != external_id else None

            hit = await self.first_success(self.artist_providers, name, known_id)
            if hit:
                fields: Dict[str, Any] = {"cover_url": hit[1]}
                if discovered:
                    fields["external_id"] = discovered
                applied = await self._apply(item_id, fields)
                return hit[1] if applied else None

            logger.info("No artist image for %s", name)
            if discovered:
                await self._apply(item_id, {"external_id": discovered})
            return None
        finally:
            self._finish(item_id, applied)

    async def resolve_mix_cover(self, source_url: str, item_id: str) -> Optional[str]:
        """Run the mix chain for one item"""
        if not self._begin(item_id):
            return None

        applied = False
        try:
            hit = await self.first_success(self.mix_providers, source_url)
            if hit:
                applied = await self._apply(item_id, {"cover_url": hit[1]})
                return hit[1] if applied else None
            return None
        finally:
            self._finish(item_id, applied)

    def resolve(self, item: CollectionItem):
        """Coroutine running the chain that matches the item's kind"""
        if item.kind is ItemKind.ARTIST:
            return self.resolve_artist_image(item.name or "", item.external_id, item.id)
        if item.kind is ItemKind.MIX:
            return self.resolve_mix_cover(item.source_url or "", item.id)
        return self.resolve_album_art(item.artist or "", item.title or "", item.id)

    def schedule(self, item: CollectionItem) -> Optional[asyncio.Task]:
        """
        Start resolution in the background.

        Must be called from a running event loop.
        """
        if self.is_fetching(item.id):
            return None
        return self._spawn(self.resolve(item))

    def schedule_album_art(self, artist: str, title: str, item_id: str) -> Optional[asyncio.Task]:
        if self.is_fetching(item_id):
            return None
        return self._spawn(self.resolve_album_art(artist, title, item_id))

    def schedule_artist_image(self, name: str, external_id: Optional[str], item_id: str) -> Optional[asyncio.Task]:
        if self.is_fetching(item_id):
            return None
        return self._spawn(self.resolve_artist_image(name, external_id, item_id))

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for every scheduled resolution to finish"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ==================== Chain ====================

    async def first_success(self, providers: Sequence[Provider], *args: Any) -> Optional[Tuple[str, str]]:
        """
        Try providers in order.

        Returns:
            (provider name, URL) for the first reachable candidate, or None
        """
        for provider in providers:
            url = await self._attempt(provider, *args)
            if url:
                logger.info("[%s] cover found: %s", provider.name, url)
                return provider.name, url
        return None

    async def _attempt(self, provider: Provider, *args: Any) -> Optional[str]:
        # Any provider failure counts as "no result" and the chain moves on
        try:
            candidate = await asyncio.to_thread(provider.fetch, *args)
            if not candidate:
                return None
            if not await asyncio.to_thread(self.reachable, candidate):
                logger.debug("[%s] unreachable candidate %s", provider.name, candidate)
                return None
            return candidate
        except Exception as e:
            logger.warning("[%s] provider failed: %s", provider.name, e)
            return None

    async def _lookup_artist_id(self, name: str) -> Optional[str]:
        if not self.find_artist_id or not name:
            return None
        try:
            return await asyncio.to_thread(self.find_artist_id, name)
        except Exception as e:
            logger.warning("Artist id lookup failed for %s: %s", name, e)
            return None

    async def _apply(self, item_id: str, fields: Dict[str, Any]) -> bool:
        """
        Persist, then update the store.

        The item may have been removed while the chain ran; it is checked
        before each write and never re-added.
        """
        if item_id not in self.store:
            logger.info("Discarding artwork for removed item %s", item_id)
            return False

        try:
            await asyncio.to_thread(self.backend.update, item_id, dict(fields))
        except Exception as e:
            logger.error("Failed to save artwork for %s: %s", item_id, e)

        if self.store.patch(item_id, **fields) is None:
            logger.info("Discarding artwork for removed item %s", item_id)
            return False
        return True

    def __repr__(self) -> str:
        return (
            f"ArtworkPipeline(album={[p.name for p in self.album_providers]}, "
            f"artist={[p.name for p in self.artist_providers]}, fetching={len(self.fetching)})"
        )


def build_providers(musicbrainz, itunes, discogs, audiodb, wikimedia, mixcloud) -> Dict[str, List[Provider]]:
    """
    Standard chains over the catalog adapters in ``sources``.

    Returns:
        Dict with "album", "artist" and "mix" provider lists
    """
    def commons_image(name: str, artist_mbid: Optional[str]) -> Optional[str]:
        if not artist_mbid:
            return None
        entity = musicbrainz.wikidata_id(artist_mbid)
        if not entity:
            return None
        file_name = wikimedia.image_file(entity)
        return wikimedia.thumb_url(file_name) if file_name else None

    def mix_cover(source_url: str) -> Optional[str]:
        info = mixcloud.resolve(source_url) if source_url else None
        return info.cover_url if info else None

    return {
        "album": [
            Provider("coverartarchive", musicbrainz.find_cover),
            Provider("itunes", itunes.find_cover),
            Provider("discogs", discogs.scrape_cover),
        ],
        "artist": [
            Provider("audiodb", lambda name, _mbid: audiodb.find_artist_photo(name)),
            Provider("wikimedia", commons_image),
        ],
        "mix": [
            Provider("mixcloud", mix_cover),
        ],
    }
