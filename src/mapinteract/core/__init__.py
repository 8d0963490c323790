"""Core primitives: event channels, host contracts and the reference host."""
from .events import EventChannel, EntityChangeStatus, allow_all
from .errors import MapInteractError, MissingEntityError, UnresolvablePositionError, HostTornDownError
from .host import EntityStore, ClickRouter, FrameScheduler, GeoMath, PluginContext
from .scheduling import DeadlineQueue, Deadline
from .world import MapWorld

__all__ = [
    'EventChannel', 'EntityChangeStatus', 'allow_all',
    'MapInteractError', 'MissingEntityError', 'UnresolvablePositionError', 'HostTornDownError',
    'EntityStore', 'ClickRouter', 'FrameScheduler', 'GeoMath', 'PluginContext',
    'DeadlineQueue', 'Deadline',
    'MapWorld',
]
