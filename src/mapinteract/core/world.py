"""In-memory map host: entity store, click routing, clock and geodesy."""
from __future__ import annotations
import itertools
import logging
from typing import Callable, Hashable, Iterator

from .events import EventChannel, EntityChangeStatus, allow_all
from .errors import HostTornDownError, MissingEntityError
from .host import FrameCallback, PluginContext
from .scheduling import DeadlineQueue
from ..config import FRAME_MS, SPEED_STEPS
from ..entities.map_entity import MapEntity
from ..geo.positions import GeoPosition, EllipsoidGeodesy

logger = logging.getLogger(__name__)


class MapWorld:
    """Reference host surface. Implements every host contract in memory.

    Time is a manual millisecond clock advanced by step() or run_for(), so
    plugin behaviour is deterministic under test.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._entities: dict[str, MapEntity] = {}
        self.on_entity_change = EventChannel("entity_change")

        self.on_click = EventChannel("click")
        self.on_selecting = EventChannel("selecting")
        self.on_click_prevented = EventChannel("click_prevented")
        self.on_selected = EventChannel("selected")
        self.selected_entity_id: str | None = None

        self._now: float = start_ms
        self._calls = DeadlineQueue()
        self._frames: dict[int, FrameCallback] = {}
        self._handles = itertools.count(1)

        self.geo = EllipsoidGeodesy()
        self._paused: bool = False
        self._speed: float = 1.0
        self._destroyed: bool = False

    # --- Entity store ---

    def add(self, entity: MapEntity) -> MapEntity | None:
        """Add an entity. Returns None if the id is already taken."""
        if self._destroyed or entity.id in self._entities:
            return None
        self._entities[entity.id] = entity
        self.on_entity_change.emit(entity, EntityChangeStatus.ADDED)
        return entity

    def get(self, entity_id: str) -> MapEntity | None:
        """Get an entity by id."""
        return self._entities.get(entity_id)

    def update_position(self, entity_id: str, position: GeoPosition) -> None:
        """Move an entity and notify change subscribers."""
        if self._destroyed:
            raise HostTornDownError("map surface has been destroyed")
        entity = self._entities.get(entity_id)
        if entity is None:
            raise MissingEntityError(entity_id)
        entity.position = position
        self.on_entity_change.emit(entity, EntityChangeStatus.CHANGED)

    def remove(self, entity_id: str) -> bool:
        """Remove an entity. Returns False if it was not present."""
        entity = self._entities.pop(entity_id, None)
        if entity is None:
            return False
        if self.selected_entity_id == entity_id:
            self.selected_entity_id = None
        self.on_entity_change.emit(entity, EntityChangeStatus.REMOVED)
        return True

    def entities(self) -> Iterator[MapEntity]:
        """Iterate over a snapshot of all entities."""
        yield from list(self._entities.values())

    def position_of(self, entity: MapEntity) -> GeoPosition | None:
        """Current position of an entity, or None if it has none."""
        return entity.position

    @property
    def entity_count(self) -> int:
        """Return the number of entities."""
        return len(self._entities)

    # --- Click routing ---

    def click(self, entity_id: str | None, location: GeoPosition | None = None) -> None:
        """Route a click on an entity (or on empty space when entity_id is None).

        Selection permission is asked first; a veto sends the click to
        on_click_prevented and skips the rest. Otherwise on_click runs, and
        unless it vetoes, the entity becomes the selected one.
        """
        if self._destroyed:
            return

        entity = self._entities.get(entity_id) if entity_id is not None else None
        if entity_id is not None and entity is None:
            logger.debug("Click on unknown entity %s treated as empty space", entity_id)

        if entity is not None:
            entity_location = entity.position or location
            if not allow_all(self.on_selecting, entity, entity_location):
                allow_all(self.on_click_prevented, entity, entity_location)
                return
            location = entity_location

        if not allow_all(self.on_click, entity, location):
            return

        self.selected_entity_id = entity.id if entity is not None else None
        allow_all(self.on_selected, entity, location)

    # --- Frame scheduler ---

    def now_ms(self) -> float:
        """Current host clock in milliseconds."""
        return self._now

    def request_frames(self, callback: FrameCallback) -> int:
        """Register a callback run once per frame until cancelled."""
        handle = next(self._handles)
        self._frames[handle] = callback
        return handle

    def cancel_frames(self, handle: Hashable) -> None:
        """Stop a per-frame callback. Unknown handles are ignored."""
        self._frames.pop(handle, None)  # type: ignore[arg-type]

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> int:
        """Run a callback once, no earlier than the next step after delay_ms."""
        handle = next(self._handles)
        self._calls.push(self._now + max(0.0, delay_ms), handle, callback)
        return handle

    def cancel_call(self, handle: Hashable) -> None:
        """Cancel a pending one-shot callback. Fired or unknown handles are ignored."""
        self._calls.cancel(handle)

    @property
    def frame_callback_count(self) -> int:
        """Number of registered per-frame callbacks."""
        return len(self._frames)

    @property
    def pending_call_count(self) -> int:
        """Number of pending one-shot callbacks."""
        return len(self._calls)

    def step(self, dt_ms: float = FRAME_MS) -> None:
        """Advance the clock by one frame.

        Due one-shot callbacks run first in due order, then every frame
        callback registered at the start of the frame runs once.
        """
        if self._destroyed or self._paused:
            return

        self._now += dt_ms * self._speed

        for deadline in self._calls.pop_due(self._now):
            if self._destroyed:
                return
            deadline.payload()

        for handle, callback in list(self._frames.items()):
            if self._destroyed:
                return
            # Cancelled by an earlier callback in this frame
            if self._frames.get(handle) is not callback:
                continue
            callback(self._now)

    def run_for(self, duration_ms: float, frame_ms: float = FRAME_MS) -> None:
        """Step repeatedly until duration_ms of clock time has passed."""
        elapsed = 0.0
        while elapsed < duration_ms and not self._destroyed:
            dt = min(frame_ms, duration_ms - elapsed)
            self.step(dt)
            elapsed += dt
            if self._paused:
                break

    # --- Lifecycle ---

    def pause(self) -> None:
        """Pause the clock."""
        self._paused = True

    def unpause(self) -> None:
        """Unpause the clock."""
        self._paused = False

    def toggle_pause(self) -> None:
        """Toggle pause state."""
        self._paused = not self._paused

    @property
    def paused(self) -> bool:
        """Check if the clock is paused."""
        return self._paused

    @property
    def speed(self) -> float:
        """Get clock speed multiplier."""
        return self._speed

    @speed.setter
    def speed(self, value: float) -> None:
        """Set clock speed (clamped 0.1 to 10)."""
        self._speed = max(0.1, min(10.0, value))

    def speed_up(self) -> None:
        """Move to the next faster speed step."""
        for step in SPEED_STEPS:
            if step > self._speed:
                self.speed = step
                break

    def speed_down(self) -> None:
        """Move to the next slower speed step."""
        for step in reversed(SPEED_STEPS):
            if step < self._speed:
                self.speed = step
                break

    def destroy(self) -> None:
        """Tear down the surface. Later calls become no-ops."""
        self._destroyed = True
        self._frames.clear()
        self._calls.clear()

    def is_destroyed(self) -> bool:
        """Check whether the surface has been torn down."""
        return self._destroyed

    def context(self) -> PluginContext:
        """Bundle this host's capabilities for plugin constructors."""
        return PluginContext(
            store=self,
            clicks=self,
            scheduler=self,
            geo=self.geo,
            is_destroyed=self.is_destroyed,
        )
