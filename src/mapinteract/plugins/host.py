"""Composition root: installs plugins on a host and wires them together."""
from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Callable

from .base import Plugin, Actions, Events
from ..core.host import PluginContext

if TYPE_CHECKING:
    from .animation import AnimationPlugin
    from .selection import SelectionPlugin
    from .tracer import TracerPlugin
    from ..entities.map_entity import MapEntity

logger = logging.getLogger(__name__)


class PluginHost:
    """Holds named plugins for one map surface."""

    def __init__(self, context: PluginContext) -> None:
        self.context = context
        self._plugins: dict[str, Plugin] = {}
        self._destroyed = False

    def add(self, name: str, plugin: Plugin) -> Plugin:
        """Install a plugin under a name. Adding a taken name is a no-op."""
        if self._destroyed:
            return plugin
        if name in self._plugins:
            logger.debug("Plugin %r already installed", name)
            return self._plugins[name]
        plugin.install(self.context.clicks)
        self._plugins[name] = plugin
        return plugin

    def get(self, name: str) -> Plugin | None:
        """Get a plugin by name."""
        return self._plugins.get(name)

    def actions(self, name: str) -> Actions:
        """Actions of a named plugin."""
        return self._plugins[name].actions

    def events(self, name: str) -> Events:
        """Events of a named plugin."""
        return self._plugins[name].events

    @property
    def names(self) -> list[str]:
        """Installed plugin names in installation order."""
        return list(self._plugins)

    def destroy(self) -> None:
        """Destroy every plugin, most recently installed first."""
        if self._destroyed:
            return
        self._destroyed = True
        for name in reversed(list(self._plugins)):
            try:
                self._plugins[name].destroy()
            except Exception:
                logger.exception("Destroying plugin %r failed", name)
        self._plugins.clear()


def wire_transit(
    selection: SelectionPlugin,
    animation: AnimationPlugin,
    tracer: TracerPlugin | None = None,
) -> Callable[[], None]:
    """Animate the source toward the target whenever a target is committed.

    When a tracer is given the moving source is traced too. Returns a handle
    that removes the wiring.
    """
    def on_target_set(source: MapEntity, target: MapEntity) -> None:
        if tracer is not None:
            tracer.trace(source)
        animation.start_animation(source, target)

    return selection.events['target_set'].subscribe(on_target_set)


def tag_vote(tag: str) -> Callable[[MapEntity], bool]:
    """Vote that approves entities carrying `tag`."""
    def vote(entity: MapEntity) -> bool:
        return tag in entity.tags

    return vote
