"""Plugin capability interface."""
from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from ..core.events import EventChannel
from ..core.host import ClickRouter, PluginContext

logger = logging.getLogger(__name__)

Actions = dict[str, Callable[..., Any]]
Events = dict[str, EventChannel]


class Plugin(ABC):
    """A stateful interaction plugin.

    Plugins expose imperative `actions` and subscribable `events`, attach to
    the host's click hooks in install(), and release everything in destroy().
    """

    actions: Actions
    events: Events

    @abstractmethod
    def install(self, clicks: ClickRouter) -> None:
        """Attach to the host's click interception hooks."""

    @abstractmethod
    def destroy(self) -> None:
        """Cancel all scheduled work and release host resources."""


def is_safe_to_operate(context: PluginContext, destroyed: bool) -> bool:
    """True while neither the plugin nor the host surface is torn down."""
    if destroyed:
        return False
    try:
        return not context.is_destroyed()
    except Exception:
        logger.exception("Host destroyed-check failed; treating host as torn down")
        return False
