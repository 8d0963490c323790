"""Contracts consumed from the host map engine.

Each host capability is a narrow protocol. Plugins receive concrete
implementations through a PluginContext and never branch on host type.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Hashable, Iterator, Protocol

from .events import EventChannel
from ..entities.map_entity import MapEntity
from ..geo.positions import GeoPosition

FrameCallback = Callable[[float], None]


class EntityStore(Protocol):
    """Entity CRUD by id plus a change notification channel.

    on_entity_change subscribers receive (entity, EntityChangeStatus).
    """

    on_entity_change: EventChannel

    def add(self, entity: MapEntity) -> MapEntity | None: ...

    def get(self, entity_id: str) -> MapEntity | None: ...

    def update_position(self, entity_id: str, position: GeoPosition) -> None: ...

    def remove(self, entity_id: str) -> bool: ...

    def entities(self) -> Iterator[MapEntity]: ...

    def position_of(self, entity: MapEntity) -> GeoPosition | None: ...


class ClickRouter(Protocol):
    """Click interception hooks. Subscribers may return False to veto.

    on_click: (entity | None, location)
    on_selecting: (entity, location)
    on_click_prevented: (entity, location)
    on_selected: (entity | None, location)
    """

    on_click: EventChannel
    on_selecting: EventChannel
    on_click_prevented: EventChannel
    on_selected: EventChannel


class FrameScheduler(Protocol):
    """Continuous per-frame callbacks and one-shot delayed callbacks."""

    def now_ms(self) -> float: ...

    def request_frames(self, callback: FrameCallback) -> Hashable: ...

    def cancel_frames(self, handle: Hashable) -> None: ...

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> Hashable: ...

    def cancel_call(self, handle: Hashable) -> None: ...


class GeoMath(Protocol):
    """Distance between two positions in meters."""

    def distance(self, a: GeoPosition, b: GeoPosition) -> float: ...


@dataclass
class PluginContext:
    """Everything a plugin needs from the host, passed explicitly."""
    store: EntityStore
    clicks: ClickRouter
    scheduler: FrameScheduler
    geo: GeoMath
    is_destroyed: Callable[[], bool] = lambda: False
