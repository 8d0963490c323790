"""Animated transit of one entity toward a snapshot of another's position."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Mapping

from .base import Plugin, is_safe_to_operate
from ..config import AnimationOptions
from ..core.errors import MissingEntityError, UnresolvablePositionError
from ..core.events import EventChannel
from ..core.host import ClickRouter, PluginContext
from ..entities.map_entity import MapEntity
from ..geo.positions import GeoPosition

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[str, str], None]


@dataclass
class AnimationRun:
    """State of the in-flight transit."""
    source_id: str
    target_id: str
    start_position: GeoPosition
    target_position: GeoPosition
    start_time: float
    duration_ms: float
    stopping_distance_meters: float
    frame_handle: Hashable | None = None
    progress: float = 0.0


@dataclass(frozen=True)
class AnimationState:
    """Read-only view of the controller's progress."""
    is_animating: bool = False
    progress: float = 0.0
    source_id: str | None = None
    target_id: str | None = None


class AnimationPlugin(Plugin):
    """Moves a source entity toward where the target was when the run began.

    The target is not re-tracked once a run starts. A run completes when
    its duration elapses or the source comes within the stopping distance
    of the target snapshot, whichever comes first. Starting a new run
    cancels the current one without completing it.
    """

    def __init__(
        self,
        context: PluginContext,
        options: AnimationOptions | Mapping[str, Any] | None = None,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        self._context = context
        if isinstance(options, AnimationOptions):
            self._options = options
        else:
            self._options = AnimationOptions().merged(options)
        self._on_complete = on_complete
        self._run: AnimationRun | None = None
        self._destroyed = False

        self.actions = {
            'start_animation': self.start_animation,
            'stop_animation': self.stop_animation,
        }
        self.events = {
            'complete': EventChannel('complete'),
        }

    def install(self, clicks: ClickRouter) -> None:
        """The animation controller does not intercept clicks."""

    @property
    def options(self) -> AnimationOptions:
        """Options applied to every run."""
        return self._options

    @property
    def state(self) -> AnimationState:
        """Snapshot of the current run."""
        run = self._run
        if run is None:
            return AnimationState()
        return AnimationState(
            is_animating=True,
            progress=run.progress,
            source_id=run.source_id,
            target_id=run.target_id,
        )

    def _is_safe(self) -> bool:
        return is_safe_to_operate(self._context, self._destroyed)

    def start_animation(self, source: MapEntity, target: MapEntity) -> None:
        """Start moving `source` toward the current position of `target`."""
        if not self._is_safe():
            return

        self._cancel_run()

        try:
            start_position = self._resolve_position(source)
            target_position = self._resolve_position(target)
        except UnresolvablePositionError as e:
            logger.warning("Could not get positions for animation %s -> %s: %s", source.id, target.id, e)
            return
        except Exception:
            logger.exception("Could not resolve positions for %s -> %s", source.id, target.id)
            return

        run = AnimationRun(
            source_id=source.id,
            target_id=target.id,
            start_position=start_position,
            target_position=target_position,
            start_time=self._context.scheduler.now_ms(),
            duration_ms=self._options.duration_ms,
            stopping_distance_meters=self._options.stopping_distance_meters,
        )
        self._run = run
        run.frame_handle = self._context.scheduler.request_frames(
            lambda now: self._step(run, now)
        )
        logger.debug("Animation started: %s -> %s", run.source_id, run.target_id)

    def _resolve_position(self, entity: MapEntity) -> GeoPosition:
        position = self._context.store.position_of(entity)
        if position is None:
            raise UnresolvablePositionError(entity.id)
        return position

    def stop_animation(self) -> None:
        """Cancel the current run without completing it.

        Allowed after host teardown: it only releases the frame callback and
        emits nothing.
        """
        self._cancel_run()

    def _cancel_run(self) -> None:
        run = self._run
        self._run = None
        if run is not None and run.frame_handle is not None:
            self._context.scheduler.cancel_frames(run.frame_handle)
            run.frame_handle = None

    def _step(self, run: AnimationRun, now: float) -> None:
        """Advance `run` by one frame."""
        # Superseded or stopped runs may still be in this frame's snapshot
        if self._run is not run:
            return
        if not self._is_safe():
            self._cancel_run()
            return

        elapsed = now - run.start_time
        if run.duration_ms > 0:
            progress = min(max(elapsed / run.duration_ms, 0.0), 1.0)
        else:
            progress = 1.0
        run.progress = progress

        # The source may have been replaced since the run started
        store = self._context.store
        if store.get(run.source_id) is None:
            logger.debug("Animation source %s disappeared; run aborted", run.source_id)
            self._cancel_run()
            return

        position = run.start_position.lerp(run.target_position, progress)
        distance = self._context.geo.distance(position, run.target_position)

        try:
            store.update_position(run.source_id, position)
        except MissingEntityError:
            self._cancel_run()
            return
        except Exception:
            logger.exception("Position update for %s failed", run.source_id)

        if self._run is not run:
            return

        if progress >= 1 or distance <= run.stopping_distance_meters:
            self._cancel_run()
            logger.debug("Animation complete: %s -> %s", run.source_id, run.target_id)
            if self._on_complete is not None:
                try:
                    self._on_complete(run.source_id, run.target_id)
                except Exception:
                    logger.exception("Completion callback for %s failed", run.source_id)
            try:
                self.events['complete'].emit(run.source_id, run.target_id)
            except Exception:
                logger.exception("Completion handler for %s failed", run.source_id)

    def destroy(self) -> None:
        """Cancel any in-flight run."""
        if self._destroyed:
            return
        self._destroyed = True
        self._cancel_run()
