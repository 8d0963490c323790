"""Stateful interaction plugins."""
from .base import Plugin
from .tracer import TracerPlugin, gradient_style, removal_interval, PointStyle
from .selection import SelectionPlugin, SelectionState
from .animation import AnimationPlugin, AnimationState
from .host import PluginHost, wire_transit, tag_vote

__all__ = [
    'Plugin',
    'TracerPlugin', 'gradient_style', 'removal_interval', 'PointStyle',
    'SelectionPlugin', 'SelectionState',
    'AnimationPlugin', 'AnimationState',
    'PluginHost', 'wire_transit', 'tag_vote',
]
