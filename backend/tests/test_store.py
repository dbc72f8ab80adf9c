"""
Tests for the marker store: appends, undo, reposition, floors and
change notifications.
"""

import pytest

from vastuvision.core.errors import InvalidCoordinate, NotFound
from vastuvision.core.store import MarkerStore
from vastuvision.models.spatial import PointKind, SpaceCategory, make_geo_point


@pytest.fixture
def store():
    return MarkerStore()


def test_starts_with_empty_ground_floor(store):
    assert len(store.floors) == 1
    assert store.active_floor.name == "Ground Floor"
    assert store.active_floor.level == 0
    assert store.active_index == 0


def test_boundary_keeps_insertion_order(store):
    for lng in (1, 2, 3):
        store.append_boundary_point(make_geo_point(0, lng))
    assert [p.longitude for p in store.active_floor.boundary] == [1, 2, 3]


def test_room_ids_are_unique_and_deterministic(store):
    first = store.append_room_point(SpaceCategory.KITCHEN, make_geo_point(0, 0))
    second = store.append_room_point(SpaceCategory.KITCHEN, make_geo_point(0, 0))
    assert first.id == "room-1"
    assert second.id == "room-2"


def test_undo_on_empty_collection_is_noop(store):
    events = []
    store.subscribe(events.append)
    assert store.undo_last(PointKind.BOUNDARY) is None
    assert store.undo_last(PointKind.ROOM) is None
    assert store.active_floor.boundary == []
    assert events == []


def test_n_appends_then_n_undos_empty_the_boundary(store):
    points = [make_geo_point(0, i) for i in range(5)]
    for point in points:
        store.append_boundary_point(point)
    removed = [store.undo_last(PointKind.BOUNDARY) for _ in points]
    assert removed == list(reversed(points))
    assert store.active_floor.boundary == []


def test_undo_only_touches_requested_collection(store):
    store.append_boundary_point(make_geo_point(0, 0))
    store.append_room_point(SpaceCategory.TOILET, make_geo_point(0, 0))
    store.undo_last(PointKind.ROOM)
    assert len(store.active_floor.boundary) == 1
    assert store.active_floor.rooms == []


def test_reposition_corner_keeps_heading(store):
    store.append_boundary_point(make_geo_point(1, 1, 45))
    moved = store.reposition_point(PointKind.BOUNDARY, 0, 2, 3)
    assert (moved.latitude, moved.longitude, moved.heading) == (2, 3, 45)
    assert store.active_floor.boundary[0] == moved


def test_reposition_room_by_id_keeps_identity(store):
    room = store.append_room_point(SpaceCategory.KITCHEN, make_geo_point(10.4, 10.4, 135))
    moved = store.reposition_point(PointKind.ROOM, room.id, 10.5, 10.5)
    assert moved.id == room.id
    assert moved.category == SpaceCategory.KITCHEN
    assert moved.location.heading == 135
    assert (moved.location.latitude, moved.location.longitude) == (10.5, 10.5)


@pytest.mark.parametrize("kind, target", [
    (PointKind.BOUNDARY, 0),
    (PointKind.BOUNDARY, -1),
    (PointKind.ROOM, "room-99"),
    (PointKind.ROOM, 0),
])
def test_reposition_missing_target(store, kind, target):
    with pytest.raises(NotFound):
        store.reposition_point(kind, target, 0, 0)


def test_reposition_invalid_coordinate_leaves_point(store):
    original = store.append_boundary_point(make_geo_point(1, 1))
    with pytest.raises(InvalidCoordinate):
        store.reposition_point(PointKind.BOUNDARY, 0, 100, 0)
    assert store.active_floor.boundary[0] == original


def test_add_floor_increments_level_and_activates(store):
    floor = store.add_floor()
    assert floor.level == 1
    assert floor.name == "Floor 2"
    assert store.active_index == 1
    assert store.active_floor is floor
    assert store.add_floor().level == 2


def test_switch_active_floor(store):
    store.add_floor()
    store.switch_active_floor(0)
    assert store.active_floor.name == "Ground Floor"
    with pytest.raises(NotFound):
        store.switch_active_floor(5)


def test_appends_target_active_floor(store):
    store.add_floor()
    store.append_boundary_point(make_geo_point(0, 0))
    assert store.floors[0].boundary == []
    assert len(store.floors[1].boundary) == 1


def test_reset_restores_single_empty_floor(store):
    store.add_floor()
    store.append_boundary_point(make_geo_point(0, 0))
    store.reset()
    assert len(store.floors) == 1
    assert store.active_index == 0
    assert store.active_floor.boundary == []


def test_subscribers_are_notified_and_can_unsubscribe(store):
    events = []
    unsubscribe = store.subscribe(events.append)
    store.append_boundary_point(make_geo_point(0, 0))
    store.add_floor()
    unsubscribe()
    store.append_boundary_point(make_geo_point(0, 0))
    assert [e.kind for e in events] == ["boundary_appended", "floor_added"]
    assert events[-1].floor_index == 1
