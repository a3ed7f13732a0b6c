from __future__ import annotations

from typing import List, Optional

import pytest

from shelf.artwork import ArtworkPipeline, Provider
from shelf.config import ConfigManager
from shelf.library import ImportSummary, Shelf, parse_entry
from shelf.models import ItemKind, SearchResult
from shelf.state import JsonRowStore
from shelf.store import ItemStore
from sources.base import CatalogHit
from sources.mixcloud import MixInfo
from sources.musicbrainz import ArtistHit
from tests.conftest import FakeRowStore, ids, make_item


class FakeCatalog:
    def __init__(self, release_groups: Optional[dict] = None) -> None:
        self.release_groups = release_groups or {}
        self.lookups: List[tuple] = []

    def search_release_groups(self, query: str, limit: int = 4) -> List[CatalogHit]:
        return [CatalogHit(source="musicbrainz", source_id="rg-1", title="OK Computer", artist="Radiohead", year="1997")]

    def search_artists(self, name: str, limit: int = 4) -> List[ArtistHit]:
        return [ArtistHit(mbid="mbid-r", name="Radiohead", disambiguation="UK band", country="GB")]

    def find_release_group(self, artist: str, title: str) -> Optional[CatalogHit]:
        self.lookups.append((artist, title))
        return self.release_groups.get((artist.lower(), title.lower()))


class FakeMixes:
    def resolve(self, url: str) -> Optional[MixInfo]:
        if "mixcloud.com" not in url:
            return None
        return MixInfo(title="Late Night Set", artist="DJ Test", cover_url="https://mc/cover.jpg", source_url=url)

    def search(self, text: str, limit: int = 4) -> List[MixInfo]:
        return [MixInfo(title="Radiohead Mix", artist="Someone", cover_url=None, source_url="https://www.mixcloud.com/s/r/")]


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_shelf(backend: FakeRowStore, catalog=None, album_url="https://caa/cover.jpg", artist_url=None):
    store = ItemStore()
    pipeline = ArtworkPipeline(
        store, backend,
        album_providers=[Provider("caa", lambda artist, title: album_url)],
        artist_providers=[Provider("audiodb", lambda name, mbid: artist_url)],
        find_artist_id=lambda name: "mbid-found",
        reachable=lambda url: True,
    )
    sleep = SleepRecorder()
    shelf = Shelf(
        backend, pipeline, store=store,
        catalog=catalog or FakeCatalog(), mixes=FakeMixes(),
        config=ConfigManager.from_dict({"import": {"delay_seconds": 1.5}}),
        sleep=sleep,
    )
    return shelf, sleep


def test_parse_entry() -> None:
    assert parse_entry("Radiohead - OK Computer") == {"artist": "Radiohead", "title": "OK Computer"}
    assert parse_entry("Boards of Canada-Geogaddi") == {"artist": "Boards of Canada", "title": "Geogaddi"}
    assert parse_entry("A - B - C") == {"artist": "A", "title": "B - C"}
    assert parse_entry("  Björk ") == {"artist": "Björk"}
    assert parse_entry("Jay-Z - The Blueprint") == {"artist": "Jay-Z", "title": "The Blueprint"}
    assert parse_entry("Artist -") == {"artist": "Artist -"}


@pytest.mark.asyncio
async def test_load_applies_display_order(backend: FakeRowStore) -> None:
    for item in (
        make_item("heard", "2024-05-01", listened=True, manual_order=0),
        make_item("first", "2024-01-01", manual_order=1),
        make_item("second", "2024-02-01", manual_order=2),
    ):
        backend.rows[item.id] = item.to_row()
    shelf, _ = make_shelf(backend)

    assert await shelf.load() == 3
    assert ids(shelf.items) == ["first", "second", "heard"]


@pytest.mark.asyncio
async def test_load_failure_leaves_shelf_empty(backend: FakeRowStore) -> None:
    backend.failing.add("select_all")
    shelf, _ = make_shelf(backend)

    assert await shelf.load() == 0
    assert shelf.items == ()


@pytest.mark.asyncio
async def test_manual_album_uses_catalog_metadata(backend: FakeRowStore) -> None:
    catalog = FakeCatalog({
        ("radiohead", "ok computer"): CatalogHit(
            source="musicbrainz", source_id="rg-okc", title="OK Computer", artist="Radiohead", year="1997"
        )
    })
    shelf, _ = make_shelf(backend, catalog=catalog)

    item = await shelf.add_manual("radiohead - ok computer")
    await shelf.artwork.wait_idle()

    assert item.kind is ItemKind.ALBUM
    assert (item.title, item.artist, item.year, item.external_id) == ("OK Computer", "Radiohead", "1997", "rg-okc")
    assert backend.rows[item.id]["cover_url"] == "https://caa/cover.jpg"
    assert shelf.store.get(item.id).cover_url == "https://caa/cover.jpg"


@pytest.mark.asyncio
async def test_unknown_album_is_added_as_typed(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend, album_url=None)

    item = await shelf.import_entry("Obscure Band - Demo Tape")
    await shelf.artwork.wait_idle()

    assert (item.artist, item.title, item.year, item.external_id) == ("Obscure Band", "Demo Tape", "TBA", None)
    assert shelf.store.get(item.id).cover_url is None
    assert len(backend.calls_to("insert")) == 1


@pytest.mark.asyncio
async def test_text_without_separator_becomes_artist(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend, artist_url="https://adb/bjork.jpg")

    item = await shelf.import_entry("Björk")
    await shelf.artwork.wait_idle()

    stored = shelf.store.get(item.id)
    assert stored.kind is ItemKind.ARTIST
    assert stored.name == "Björk"
    assert stored.cover_url == "https://adb/bjork.jpg"
    assert stored.external_id == "mbid-found"


@pytest.mark.asyncio
async def test_url_entry_adds_mix_with_cover(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend)

    item = await shelf.import_entry("https://www.mixcloud.com/djtest/late-night-set/")

    assert item.kind is ItemKind.MIX
    assert item.cover_url == "https://mc/cover.jpg"
    assert item.source_url == "https://www.mixcloud.com/djtest/late-night-set/"
    assert shelf.artwork.status(item.id) is None
    assert await shelf.import_entry("https://example.com/not-a-mix") is None


@pytest.mark.asyncio
async def test_bulk_import_is_sequential_with_delay(backend: FakeRowStore) -> None:
    shelf, sleep = make_shelf(backend)

    summary = await shelf.add_manual("Can\n\nAutechre - Amber\n  Aphex Twin - Drukqs  \n")
    await shelf.artwork.wait_idle()

    assert isinstance(summary, ImportSummary)
    assert summary.imported == 3
    assert summary.message == "Successfully imported 3 item(s)!"
    assert sleep.delays == [1.5, 1.5]
    assert [row["kind"] for row in backend.calls_to("insert")] == ["artist", "album", "album"]
    assert len(shelf.items) == 3


@pytest.mark.asyncio
async def test_toggles_persist_and_resort(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend)
    old = await shelf.add_item(make_item("old", "2024-01-01", cover_url="https://img/old.jpg"))
    new = await shelf.add_item(make_item("new", "2024-02-01", cover_url="https://img/new.jpg"))
    assert ids(shelf.items) == ["new", "old"]

    await shelf.toggle_listened(new.id)
    assert ids(shelf.items) == ["old", "new"]
    assert backend.rows["new"]["listened"] is True

    updated = await shelf.toggle_listen_again(new.id)
    assert updated.listen_again
    assert backend.rows["new"]["listen_again"] is True
    assert ids(shelf.rack.rack_items) == ["old", "new"]
    assert await shelf.toggle_listened("missing") is None


@pytest.mark.asyncio
async def test_remove_evicts_everywhere(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend, album_url=None)
    item = await shelf.add_album("Title", "Artist")
    await shelf.artwork.wait_idle()

    assert await shelf.remove(item.id)
    assert item.id not in shelf.store
    assert item.id not in backend.rows
    assert shelf.artwork.status(item.id) is None
    assert not await shelf.remove(item.id)


@pytest.mark.asyncio
async def test_insert_failure_keeps_item(backend: FakeRowStore) -> None:
    backend.failing.add("insert")
    shelf, _ = make_shelf(backend)

    item = await shelf.add_artist("Can", "German band", external_id="mbid-can")
    await shelf.artwork.wait_idle()

    assert item.id in shelf.store


@pytest.mark.asyncio
async def test_retry_artwork_reruns_chain(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend, album_url=None)
    item = await shelf.add_album("Title", "Artist")
    await shelf.artwork.wait_idle()
    assert shelf.store.get(item.id).cover_url is None

    shelf.artwork.album_providers = [Provider("caa", lambda artist, title: "https://caa/late.jpg")]

    assert await shelf.retry_artwork(item.id) == "https://caa/late.jpg"
    assert await shelf.retry_artwork(item.id) is None
    assert await shelf.retry_artwork("missing") is None


@pytest.mark.asyncio
async def test_search_groups_results(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend)

    assert await shelf.search("r") == []
    assert await shelf.search("one\ntwo") == []

    results = await shelf.search("radiohead")

    assert [r.kind for r in results] == [ItemKind.ALBUM, ItemKind.ARTIST, ItemKind.MIX]
    assert results[0].external_id == "rg-1"
    assert results[1].disambiguation == "UK band"


@pytest.mark.asyncio
async def test_adding_search_result_keeps_catalog_id(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend)

    item = await shelf.add_search_result(
        SearchResult(kind=ItemKind.ALBUM, title="Amber", artist="Autechre", year="1994", external_id="rg-amber")
    )
    await shelf.artwork.wait_idle()

    assert backend.rows[item.id]["external_id"] == "rg-amber"
    assert backend.rows[item.id]["cover_url"] == "https://caa/cover.jpg"


@pytest.mark.asyncio
async def test_drag_and_rack_share_the_store(backend: FakeRowStore) -> None:
    shelf, _ = make_shelf(backend)
    for item in (
        make_item("1", "2024-01-01", cover_url="https://img/1.jpg"),
        make_item("2", "2024-02-01", cover_url="https://img/2.jpg"),
    ):
        await shelf.add_item(item)

    shelf.reorder.begin("1", 1)
    shelf.reorder.hover(0)
    await shelf.reorder.end()

    assert ids(shelf.rack.rack_items) == ["1", "2"]
    assert backend.rows["1"]["item_order"] == 0


@pytest.mark.asyncio
async def test_removed_item_stays_gone_after_reload(tmp_path) -> None:
    backend = JsonRowStore(str(tmp_path))
    shelf = Shelf(backend, config=ConfigManager.from_dict({}))
    kept = await shelf.add_item(make_item("kept", "2024-01-01", cover_url="https://img/kept.jpg"))
    gone = await shelf.add_item(make_item("gone", "2024-02-01", cover_url="https://img/gone.jpg"))

    await shelf.remove(gone.id)
    backend.upsert_orders([(gone.id, 0), (kept.id, 1)])
    backend.update(gone.id, {"cover_url": "https://img/late.jpg"})

    reloaded = Shelf(backend, config=ConfigManager.from_dict({}))
    assert await reloaded.load() == 1
    assert ids(reloaded.items) == ["kept"]
