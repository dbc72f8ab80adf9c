"""
Marker Store

Owns the ordered floor collection and the active-floor pointer, and applies
point mutations to the active floor. Stage rules are NOT checked here; the
capture workflow rejects illegal calls before they reach the store.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from vastuvision.core.errors import NotFound
from vastuvision.models.spatial import (
    ClassifiedPoint,
    Floor,
    GeoPoint,
    IdAllocator,
    PointKind,
    SpaceCategory,
    make_floor,
)


logger = logging.getLogger(__name__)

GROUND_FLOOR_NAME = "Ground Floor"


@dataclass(frozen=True)
class StoreEvent:
    """Change notification emitted after every mutation."""
    kind: str
    floor_index: int


Listener = Callable[[StoreEvent], None]


class MarkerStore:
    """
    Floors of one capture session plus the active-floor selector.

    Every mutation targets the active floor and notifies subscribers.
    """

    def __init__(self, ids: Optional[IdAllocator] = None):
        self._ids = ids or IdAllocator()
        self._listeners: List[Listener] = []
        self.floors: List[Floor] = []
        self.active_index = 0
        self._seed()

    # ============ Observers ============

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: str) -> None:
        event = StoreEvent(kind=kind, floor_index=self.active_index)
        for listener in list(self._listeners):
            listener(event)

    # ============ Floors ============

    @property
    def active_floor(self) -> Floor:
        return self.floors[self.active_index]

    def add_floor(self) -> Floor:
        """Append an empty floor at the next level and make it active."""
        level = len(self.floors)
        floor = make_floor(f"Floor {level + 1}", level, floor_id=self._ids.next("floor"))
        self.floors.append(floor)
        self.active_index = len(self.floors) - 1
        logger.info("Added %s (level %d)", floor.name, floor.level)
        self._emit("floor_added")
        return floor

    def switch_active_floor(self, index: int) -> Floor:
        """
        Point the active-floor selector at another floor.

        Raises:
            NotFound: index out of range
        """
        if not 0 <= index < len(self.floors):
            raise NotFound(
                f"No floor at index {index}",
                context={"index": index, "floor_count": len(self.floors)},
            )
        self.active_index = index
        self._emit("floor_switched")
        return self.active_floor

    def reset(self) -> None:
        """Discard every floor and start over with an empty ground floor."""
        self._seed()
        self._emit("reset")

    def _seed(self) -> None:
        self.floors = [make_floor(GROUND_FLOOR_NAME, 0, floor_id=self._ids.next("floor"))]
        self.active_index = 0

    # ============ Points ============

    def append_boundary_point(self, point: GeoPoint) -> GeoPoint:
        self.active_floor.boundary.append(point)
        self._emit("boundary_appended")
        return point

    def append_room_point(self, category: SpaceCategory, point: GeoPoint) -> ClassifiedPoint:
        room = ClassifiedPoint(id=self._ids.next("room"), category=category, location=point)
        self.active_floor.rooms.append(room)
        self._emit("room_appended")
        return room

    def undo_last(self, kind: PointKind) -> Optional[Union[GeoPoint, ClassifiedPoint]]:
        """
        Remove the most recently appended point of the given collection.

        Returns the removed point, or None when the collection is empty.
        """
        collection = self._collection(kind)
        if not collection:
            return None
        removed = collection.pop()
        self._emit("undone")
        return removed

    def reposition_point(
        self,
        kind: PointKind,
        target: Union[int, str],
        latitude: float,
        longitude: float,
    ) -> Union[GeoPoint, ClassifiedPoint]:
        """
        Move an existing point, keeping its heading, category and id.

        Args:
            kind: BOUNDARY (target is an index) or ROOM (target is a room id,
                or an index)
            target: Corner index or room id

        Raises:
            NotFound: no such corner index / room id
            InvalidCoordinate: new coordinates out of range
        """
        floor = self.active_floor
        if kind == PointKind.BOUNDARY:
            index = self._resolve_index(floor.boundary, target)
            moved = floor.boundary[index].moved_to(latitude, longitude)
            floor.boundary[index] = moved
        else:
            index = floor.find_room(target) if isinstance(target, str) else target
            index = self._resolve_index(floor.rooms, index, requested=target)
            room = floor.rooms[index]
            moved = room.model_copy(update={"location": room.location.moved_to(latitude, longitude)})
            floor.rooms[index] = moved
        self._emit("repositioned")
        return moved

    def _collection(self, kind: PointKind) -> list:
        floor = self.active_floor
        return floor.boundary if kind == PointKind.BOUNDARY else floor.rooms

    @staticmethod
    def _resolve_index(collection: list, index, requested=None) -> int:
        requested = index if requested is None else requested
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(collection):
            raise NotFound(
                f"No point matching {requested!r}",
                context={"target": requested, "size": len(collection)},
            )
        return index
