"""Trace engine - records entity positions as a fading trail of markers."""
from __future__ import annotations
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Hashable, Mapping

from .base import Plugin, is_safe_to_operate
from ..config import TraceOptions, TRACE_ENTITY_PREFIX, ORPHAN_SWEEP_DELAY_MS
from ..core.events import EventChannel, EntityChangeStatus
from ..core.host import ClickRouter, PluginContext
from ..core.scheduling import DeadlineQueue
from ..entities.map_entity import MapEntity, PointGraphic
from ..entities.trails import EntityTrace, TraceCoordinate

logger = logging.getLogger(__name__)

FADE_OUT = "fade_out"
REMOVE = "remove"


@dataclass(frozen=True)
class PointStyle:
    """Gradient styling of one trace point."""
    color: tuple[float, float, float]
    alpha: float
    size: float


def gradient_style(options: TraceOptions, index: int, count: int) -> PointStyle:
    """Style of the point at array index `index` in a trace of `count` points.

    Index 0 is the tail (oldest) and count - 1 the head (newest). A single
    point gets the head values.
    """
    t = index / (count - 1) if count > 1 else 1.0
    color = tuple(
        tail + (head - tail) * t
        for tail, head in zip(options.tail_color, options.head_color)
    )
    alpha = options.tail_alpha + (options.head_alpha - options.tail_alpha) * t
    size_ratio = options.tail_size_ratio + (options.head_size_ratio - options.tail_size_ratio) * t
    return PointStyle(color=color, alpha=alpha, size=options.trace_point_size * size_ratio)  # type: ignore[arg-type]


def removal_interval(options: TraceOptions, count: int) -> float:
    """Delay between staggered removals. Fewer points remove more slowly."""
    if options.removal_slowdown_threshold > 0:
        remaining = 1 - count / options.removal_slowdown_threshold
    else:
        remaining = 0.0
    factor = min(1.0, max(0.0, remaining)) ** options.removal_slowdown_power
    return options.removal_interval_min + (
        options.removal_interval_max - options.removal_interval_min
    ) * factor


class TracerPlugin(Plugin):
    """Keeps a fading trail of historical positions for traced entities.

    A point is recorded whenever a traced entity moves (via the store's
    change channel) unless it is both too close to and too soon after the
    previous point. Points fade out after their lifetime, or early when the
    trace grows past max_coordinates. A single per-frame tick drives fades,
    gradient restyling and staggered expiry; it runs only while at least
    one entity is traced.
    """

    def __init__(self, context: PluginContext, options: TraceOptions | Mapping[str, Any] | None = None) -> None:
        self._context = context
        if isinstance(options, TraceOptions):
            self._default_options = options
        else:
            self._default_options = TraceOptions().merged(options)

        self._traces: dict[str, EntityTrace] = {}
        self._deadlines = DeadlineQueue()
        self._frame_handle: Hashable | None = None
        self._unsubscribe_entity_change = None
        self._orphan_sweep_handle: Hashable | None = None
        self._marker_ids = itertools.count(1)
        self._destroyed = False

        self.actions = {
            'trace': self.trace,
            'untrace': self.untrace,
            'untrace_all': self.untrace_all,
            'get_trace': self.get_trace,
        }
        self.events = {
            'on_change': EventChannel('on_change'),
            'on_render': EventChannel('on_render'),
        }

        self._schedule_orphan_sweep()

    def install(self, clicks: ClickRouter) -> None:
        """The tracer does not intercept clicks."""

    @property
    def default_options(self) -> TraceOptions:
        """Options applied to traces started without overrides."""
        return self._default_options

    @property
    def traced_ids(self) -> list[str]:
        """Ids of all traced entities."""
        return list(self._traces)

    @property
    def is_running(self) -> bool:
        """True while the tick loop is registered with the scheduler."""
        return self._frame_handle is not None

    def _is_safe(self) -> bool:
        return is_safe_to_operate(self._context, self._destroyed)

    # --- Actions ---

    def trace(self, entity: MapEntity, options: TraceOptions | Mapping[str, Any] | None = None) -> None:
        """Start tracing an entity, recording its current position.

        Tracing an already traced entity only replaces its options.
        """
        if not self._is_safe():
            return

        entity_id = entity.id
        if not entity_id:
            return

        if isinstance(options, TraceOptions):
            merged = options
        else:
            merged = self._default_options.merged(options)

        existing = self._traces.get(entity_id)
        if existing is not None:
            existing.options = merged
            logger.debug("Entity %s already traced; options updated", entity_id)
            return

        if not self._traces:
            self._start_loop()
            self._subscribe_to_entity_changes()

        trace = EntityTrace(entity_id=entity_id, options=merged)
        self._traces[entity_id] = trace
        logger.debug("Tracing entity %s", entity_id)

        self._add_coordinate(entity)
        # A subscriber may have untraced the entity during point creation
        if self._traces.get(entity_id) is trace:
            self._emit_change(entity_id, trace)

    def untrace(self, entity_id: str) -> None:
        """Stop tracing an entity and remove its trail.

        State is always released; on_change(entity_id, None) is only emitted
        while the host is still live.
        """
        trace = self._traces.get(entity_id)
        if trace is None:
            return

        marker_ids = []
        for coord in trace.coordinates:
            self._cancel_deadlines(coord.id)
            marker_ids.append(coord.id)

        del self._traces[entity_id]
        self._defer_marker_removal(marker_ids)

        if not self._traces:
            self._stop_loop()
            self._unsubscribe_from_entity_changes()

        logger.debug("Untraced entity %s", entity_id)
        if self._is_safe():
            self._emit_change(entity_id, None)

    def untrace_all(self) -> None:
        """Stop tracing every entity."""
        for entity_id in list(self._traces):
            self.untrace(entity_id)

    def get_trace(self, entity_id: str) -> EntityTrace | None:
        """Get the trace of an entity, if it is traced."""
        return self._traces.get(entity_id)

    # --- Point creation ---

    def _on_entity_change(self, entity: MapEntity, status: EntityChangeStatus, *_: Any) -> None:
        if status is EntityChangeStatus.CHANGED and entity.id in self._traces:
            self._add_coordinate(entity)

    def _add_coordinate(self, entity: MapEntity) -> None:
        """Record the entity's current position if throttling allows it."""
        if not self._is_safe():
            return

        trace = self._traces.get(entity.id)
        if trace is None:
            return
        options = trace.options

        try:
            position = self._context.store.position_of(entity)
        except Exception:
            logger.exception("Could not resolve position of %s", entity.id)
            return
        if position is None:
            logger.debug("Entity %s has no position; point skipped", entity.id)
            return

        now = self._context.scheduler.now_ms()

        # Skip only if the point is both too close AND too soon
        last = trace.head
        if last is not None:
            distance = self._context.geo.distance(last.position, position)
            elapsed = now - last.timestamp_created
            if distance < options.min_point_distance and elapsed < options.min_point_interval:
                return

        count = len(trace.coordinates)
        coord = TraceCoordinate(
            id=f"{TRACE_ENTITY_PREFIX}{entity.id}-{next(self._marker_ids)}",
            position=position,
            timestamp_created=now,
            birth_index=count,
        )

        style = gradient_style(options, count, count + 1)
        marker = MapEntity(
            id=coord.id,
            name=f"trace of {entity.name or entity.id}",
            position=position,
            point=PointGraphic(color=style.color, alpha=style.alpha, size=style.size, opacity=0.0),
            tags={"trace-point"},
        )
        try:
            added = self._context.store.add(marker)
        except Exception:
            logger.exception("Failed to add trace marker %s", coord.id)
            added = None
        if added is None:
            return
        if self._traces.get(entity.id) is not trace:
            self._defer_marker_removal([coord.id])
            return

        trace.coordinates.append(coord)
        self._deadlines.push(now + options.fade_out_delay, (coord.id, FADE_OUT), entity.id)

        # Forced eviction: oldest points still alive fade out early
        live = [c for c in trace.coordinates if not c.fade_out_started]
        for oldest in live[:max(0, len(live) - options.max_coordinates)]:
            self._deadlines.cancel((oldest.id, FADE_OUT))
            self._start_fade_out(entity.id, oldest.id)

        self._emit_change(entity.id, trace)

    # --- Fade out and removal ---

    def _start_fade_out(self, entity_id: str, coord_id: str) -> None:
        if not self._is_safe():
            return

        trace = self._traces.get(entity_id)
        if trace is None:
            return
        coord = trace.find(coord_id)
        if coord is None or coord.fade_out_started:
            return

        now = self._context.scheduler.now_ms()
        coord.fade_out_started = True
        coord.fade_out_started_at = now
        self._deadlines.cancel((coord_id, FADE_OUT))
        self._deadlines.push(now + trace.options.fade_out_duration, (coord_id, REMOVE), entity_id)

    def _remove_coordinate(self, entity_id: str, coord_id: str) -> None:
        if not self._is_safe():
            return

        trace = self._traces.get(entity_id)
        if trace is None:
            return

        index = trace.index_of(coord_id)
        if index != -1:
            del trace.coordinates[index]

        self._remove_marker(coord_id)
        self._cancel_deadlines(coord_id)
        self._emit_change(entity_id, trace)

    def _remove_expired_points(self, trace: EntityTrace, now: float) -> None:
        """Remove the oldest point once it outlives coordinate_lifetime.

        Removes at most one point per call, spaced by removal_interval().
        """
        oldest = trace.tail
        if oldest is None:
            return

        options = trace.options
        if oldest.age(now) <= options.coordinate_lifetime:
            return

        interval = removal_interval(options, len(trace.coordinates))
        if trace.last_removal is not None and now - trace.last_removal < interval:
            return

        trace.last_removal = now
        self._remove_coordinate(trace.entity_id, oldest.id)

    def _cancel_deadlines(self, coord_id: str) -> None:
        self._deadlines.cancel((coord_id, FADE_OUT))
        self._deadlines.cancel((coord_id, REMOVE))

    # --- Tick loop ---

    def _start_loop(self) -> None:
        if self._frame_handle is None:
            self._frame_handle = self._context.scheduler.request_frames(self._tick)

    def _stop_loop(self) -> None:
        if self._frame_handle is not None:
            self._context.scheduler.cancel_frames(self._frame_handle)
            self._frame_handle = None

    def _tick(self, now: float) -> None:
        """Per-frame update: due fades/removals, then throttled restyling."""
        if not self._is_safe():
            return

        for deadline in self._deadlines.pop_due(now):
            coord_id, kind = deadline.key
            try:
                if kind == FADE_OUT:
                    self._start_fade_out(deadline.payload, coord_id)
                else:
                    self._remove_coordinate(deadline.payload, coord_id)
            except Exception:
                logger.exception("Trace deadline %s for %s failed", kind, coord_id)

        for entity_id, trace in list(self._traces.items()):
            if self._traces.get(entity_id) is not trace:
                continue
            last = trace.last_style_update
            if last is not None and now - last < trace.options.color_update_interval:
                continue
            trace.last_style_update = now
            try:
                self._update_styles(trace, now)
                self._remove_expired_points(trace, now)
                self.events['on_render'].emit(entity_id, trace)
            except Exception:
                logger.exception("Trace update for %s failed", entity_id)

    def _update_styles(self, trace: EntityTrace, now: float) -> None:
        """Restyle every point from its current index in the trace."""
        options = trace.options
        count = len(trace.coordinates)

        for index, coord in enumerate(trace.coordinates):
            if options.fade_in_duration > 0:
                coord.fade_in_progress = min(1.0, coord.age(now) / options.fade_in_duration)
            else:
                coord.fade_in_progress = 1.0
            if coord.fade_out_started and coord.fade_out_started_at is not None:
                if options.fade_out_duration > 0:
                    elapsed = now - coord.fade_out_started_at
                    coord.fade_out_progress = min(1.0, elapsed / options.fade_out_duration)
                else:
                    coord.fade_out_progress = 1.0

            marker = self._context.store.get(coord.id)
            if marker is None or marker.point is None:
                continue
            style = gradient_style(options, index, count)
            marker.point.color = style.color  # type: ignore[assignment]
            marker.point.alpha = style.alpha
            marker.point.size = style.size
            marker.point.opacity = coord.opacity

    # --- Host subscriptions and markers ---

    def _subscribe_to_entity_changes(self) -> None:
        if self._unsubscribe_entity_change is not None:
            return
        self._unsubscribe_entity_change = self._context.store.on_entity_change.subscribe(
            self._on_entity_change
        )

    def _unsubscribe_from_entity_changes(self) -> None:
        if self._unsubscribe_entity_change is not None:
            self._unsubscribe_entity_change()
            self._unsubscribe_entity_change = None

    def _emit_change(self, entity_id: str, trace: EntityTrace | None) -> None:
        self.events['on_change'].emit(entity_id, trace)

    def _remove_marker(self, marker_id: str) -> None:
        try:
            self._context.store.remove(marker_id)
        except Exception:
            logger.exception("Failed to remove trace marker %s", marker_id)

    def _defer_marker_removal(self, marker_ids: list[str]) -> None:
        """Remove markers on the next scheduler tick, not mid-frame."""
        if not marker_ids or self._context.is_destroyed():
            return

        def remove_markers() -> None:
            if self._context.is_destroyed():
                return
            for marker_id in marker_ids:
                self._remove_marker(marker_id)

        try:
            self._context.scheduler.call_later(0, remove_markers)
        except Exception:
            logger.exception("Could not schedule removal of %d trace markers", len(marker_ids))

    def _schedule_orphan_sweep(self) -> None:
        try:
            self._orphan_sweep_handle = self._context.scheduler.call_later(
                ORPHAN_SWEEP_DELAY_MS, self._sweep_orphans
            )
        except Exception:
            logger.exception("Could not schedule orphan trace sweep")

    def _sweep_orphans(self) -> None:
        """Remove trace markers left behind by an earlier tracer instance."""
        self._orphan_sweep_handle = None
        if not self._is_safe():
            return

        tracked = {
            coord.id
            for trace in self._traces.values()
            for coord in trace.coordinates
        }
        orphans = [
            entity.id for entity in self._context.store.entities()
            if entity.id.startswith(TRACE_ENTITY_PREFIX) and entity.id not in tracked
        ]
        for marker_id in orphans:
            self._remove_marker(marker_id)
        if orphans:
            logger.info("Removed %d orphaned trace markers", len(orphans))

    # --- Lifecycle ---

    def destroy(self) -> None:
        """Stop the tick loop, cancel all deadlines and clear every trace.

        Marker removal is deferred by one scheduler tick.
        """
        if self._destroyed:
            return
        self._destroyed = True

        self._stop_loop()
        self._unsubscribe_from_entity_changes()
        if self._orphan_sweep_handle is not None:
            self._context.scheduler.cancel_call(self._orphan_sweep_handle)
            self._orphan_sweep_handle = None
        self._deadlines.clear()

        marker_ids = [
            coord.id
            for trace in self._traces.values()
            for coord in trace.coordinates
        ]
        self._traces.clear()
        self._defer_marker_removal(marker_ids)
