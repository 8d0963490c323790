"""Interaction plugins for a map surface: selection, transit animation and traces."""
from .config import TraceOptions, AnimationOptions
from .core import EventChannel, EntityChangeStatus, MapWorld, PluginContext
from .entities import MapEntity, PointGraphic
from .geo import GeoPosition
from .plugins import (
    Plugin, PluginHost, TracerPlugin, SelectionPlugin, SelectionState,
    AnimationPlugin, wire_transit, tag_vote,
)

__version__ = "0.1.0"

__all__ = [
    'TraceOptions', 'AnimationOptions',
    'EventChannel', 'EntityChangeStatus', 'MapWorld', 'PluginContext',
    'MapEntity', 'PointGraphic', 'GeoPosition',
    'Plugin', 'PluginHost', 'TracerPlugin', 'SelectionPlugin', 'SelectionState',
    'AnimationPlugin', 'wire_transit', 'tag_vote',
]
