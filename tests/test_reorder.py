from __future__ import annotations

import pytest

from shelf.clock import ManualClock
from shelf.errors import ReorderError
from shelf.ordering import order
from shelf.reorder import DragState, ReorderSession
from shelf.store import ItemStore
from tests.conftest import FakeRowStore, ids, make_item


def make_session(items, backend: FakeRowStore, clock: ManualClock, throttle: float = 0.1):
    store = ItemStore(items)
    return store, ReorderSession(store, backend, clock=clock, throttle=throttle)


@pytest.mark.asyncio
async def test_drag_commit_example(backend: FakeRowStore, clock: ManualClock) -> None:
    store, session = make_session(
        [make_item("1", "2024-01-01"), make_item("2", "2024-02-01")], backend, clock
    )
    assert ids(store) == ["2", "1"]

    session.begin("1", 1, pointer=(130, 40), origin=(100, 20))
    assert session.hover(0)
    committed = await session.end()

    assert ids(committed) == ["1", "2"]
    assert {item.id: item.manual_order for item in store} == {"1": 0, "2": 1}
    assert ids(order(store.items)) == ["1", "2"]
    assert backend.calls_to("upsert_orders") == [[("1", 0), ("2", 1)]]
    assert session.state is DragState.IDLE


@pytest.mark.asyncio
async def test_commit_assigns_dense_positions(backend: FakeRowStore, clock: ManualClock) -> None:
    items = [make_item(str(i), f"2024-01-{i + 1:02d}") for i in range(6)]
    store, session = make_session(items, backend, clock)

    session.begin("0", 5)
    for target in (3, 1, 0):
        clock.advance(0.2)
        session.hover(target)
    committed = await session.end()

    assert [item.manual_order for item in committed] == list(range(6))
    assert ids(committed) == ["0", "5", "4", "3", "2", "1"]
    assert ids(store) == ids(committed)


def test_hover_previews_without_assigning_order(backend: FakeRowStore, clock: ManualClock) -> None:
    store, session = make_session(
        [make_item("a", "2024-03-01"), make_item("b", "2024-02-01"), make_item("c", "2024-01-01")],
        backend, clock,
    )

    session.begin("c", 2)
    assert session.hover(0)

    assert ids(store) == ["c", "a", "b"]
    assert all(item.manual_order is None for item in store)
    assert backend.calls == []
    assert session.current_index == 0


def test_hover_is_throttled(backend: FakeRowStore, clock: ManualClock) -> None:
    store, session = make_session(
        [make_item("a", "2024-03-01"), make_item("b", "2024-02-01"), make_item("c", "2024-01-01")],
        backend, clock,
    )
    session.begin("c", 2)

    assert session.hover(1)
    clock.advance(0.05)
    assert not session.hover(0)
    assert ids(store) == ["a", "c", "b"]

    clock.advance(0.06)
    assert session.hover(0)
    assert ids(store) == ["c", "a", "b"]


def test_hover_same_or_invalid_index_is_ignored(backend: FakeRowStore, clock: ManualClock) -> None:
    store, session = make_session([make_item("a"), make_item("b", "2023-01-01")], backend, clock)

    assert not session.hover(1)
    session.begin("a", 0)
    assert not session.hover(0)
    assert not session.hover(5)
    assert not session.hover(-1)
    assert ids(store) == ["a", "b"]


def test_pointer_offset_tracks_grab_point(backend: FakeRowStore, clock: ManualClock) -> None:
    _, session = make_session([make_item("a")], backend, clock)

    session.begin("a", 0, pointer=(130, 45), origin=(100, 20))
    session.track((200, 300))

    assert session.offset == (30, 25)
    assert session.preview_position == (170, 275)


def test_begin_requires_idle_and_known_item(backend: FakeRowStore, clock: ManualClock) -> None:
    _, session = make_session([make_item("a")], backend, clock)

    with pytest.raises(ReorderError):
        session.begin("missing", 0)

    session.begin("a", 0)
    with pytest.raises(ReorderError):
        session.begin("a", 0)


@pytest.mark.asyncio
async def test_persistence_failure_keeps_memory_order(backend: FakeRowStore, clock: ManualClock) -> None:
    backend.failing.add("upsert_orders")
    store, session = make_session(
        [make_item("1", "2024-01-01"), make_item("2", "2024-02-01")], backend, clock
    )

    session.begin("1", 1)
    session.hover(0)
    await session.end()

    assert ids(store) == ["1", "2"]
    assert store.get("1").manual_order == 0
    assert session.state is DragState.IDLE


@pytest.mark.asyncio
async def test_end_without_drag_is_a_no_op(backend: FakeRowStore, clock: ManualClock) -> None:
    _, session = make_session([make_item("a")], backend, clock)

    assert await session.end() == []
    assert backend.calls == []


@pytest.mark.asyncio
async def test_release_without_hover_still_commits(backend: FakeRowStore, clock: ManualClock) -> None:
    store, session = make_session(
        [make_item("1", "2024-01-01"), make_item("2", "2024-02-01")], backend, clock
    )

    session.begin("2", 0)
    await session.end()
    await session.end()

    assert {item.id: item.manual_order for item in store} == {"2": 0, "1": 1}
    assert len(backend.calls_to("upsert_orders")) == 1
