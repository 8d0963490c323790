"""Interaction constants and configuration."""
from __future__ import annotations
import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# Display settings (viewer)
SCREEN_WIDTH = 1280
SCREEN_HEIGHT = 800
FPS = 60
TITLE = "mapinteract: selection, transit and traces"

# Host clock
FRAME_MS = 1000 / FPS

# Viewer map extent (degrees) shown at zoom 1.0
VIEW_CENTER = (34.8, 32.0)  # lon, lat
VIEW_SPAN_DEGREES = 0.6
MIN_ZOOM = 0.1
MAX_ZOOM = 40.0

# Clock speed steps for the viewer
SPEED_STEPS = (0.25, 0.5, 1, 2, 5, 10)

# Trace engine
TRACE_ENTITY_PREFIX = "tracer-point-"
ORPHAN_SWEEP_DELAY_MS = 1000

# Animation controller
DEFAULT_ANIMATION_DURATION_MS = 5000
DEFAULT_STOPPING_DISTANCE_M = 100.0

# Colors
COLORS = {
    'background': (12, 16, 24),
    'grid': (30, 38, 52),
    'entity': (90, 170, 255),
    'source': (255, 210, 80),
    'target': (235, 90, 90),
    'selected': (255, 255, 255),
    'ui_text': (200, 200, 220),
    'yellow': (255, 255, 0),
    'orange': (255, 165, 0),
    'cyan': (0, 255, 255),
}

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def _normalize_key(key: str) -> str:
    """Convert camelCase option names to snake_case."""
    return _CAMEL_BOUNDARY.sub('_', key).lower()


class _MergeableOptions:
    """Shared merge behaviour for option dataclasses."""

    def merged(self, overrides: Mapping[str, Any] | None = None):
        """Return a copy with overrides applied.

        Keys may be snake_case or camelCase. Unknown keys are ignored and
        missing keys keep the receiver's values.
        """
        if not overrides:
            return dataclasses.replace(self)

        known = {f.name for f in dataclasses.fields(self)}
        changes: dict[str, Any] = {}
        for key, value in overrides.items():
            name = _normalize_key(key)
            if name in known:
                changes[name] = value
            else:
                logger.debug("Ignoring unknown option %r for %s", key, type(self).__name__)
        return dataclasses.replace(self, **changes)


@dataclass(frozen=True)
class TraceOptions(_MergeableOptions):
    """Per-trace configuration. Durations in ms, distances in meters."""
    # Core settings
    max_coordinates: int = 10
    coordinate_lifetime: float = 60000
    fade_in_duration: float = 300
    fade_out_duration: float = 500

    # Point appearance
    trace_point_size: float = 5
    tail_color: tuple[int, int, int] = COLORS['yellow']
    head_color: tuple[int, int, int] = COLORS['orange']

    # Opacity
    tail_alpha: float = 0.04
    head_alpha: float = 0.12

    # Size scaling relative to trace_point_size
    tail_size_ratio: float = 0.1
    head_size_ratio: float = 1.0

    # Point creation throttling
    min_point_distance: float = 500
    min_point_interval: float = 5000

    # Staggered removal
    removal_interval_min: float = 100
    removal_interval_max: float = 2500
    removal_slowdown_threshold: float = 20
    removal_slowdown_power: float = 2

    # Style recompute throttling
    color_update_interval: float = 100

    @property
    def fade_out_delay(self) -> float:
        """Time from creation until a point's natural fade-out starts."""
        return max(0.0, self.coordinate_lifetime - self.fade_out_duration)


@dataclass(frozen=True)
class AnimationOptions(_MergeableOptions):
    """Transit animation configuration."""
    duration_ms: float = DEFAULT_ANIMATION_DURATION_MS
    stopping_distance_meters: float = DEFAULT_STOPPING_DISTANCE_M


@dataclass
class ViewerConfig:
    """Runtime viewer configuration."""
    screen_width: int = SCREEN_WIDTH
    screen_height: int = SCREEN_HEIGHT
    fps: int = FPS
    animation_duration_ms: float = 4000
    trace_options: TraceOptions = dataclasses.field(
        default_factory=lambda: TraceOptions(min_point_distance=150, min_point_interval=400)
    )
