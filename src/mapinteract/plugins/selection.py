"""Two-step source/target selection on top of the host's click hooks."""
from __future__ import annotations
import logging
from enum import Enum

from .base import Plugin, is_safe_to_operate
from ..core.events import EventChannel
from ..core.host import ClickRouter, PluginContext
from ..entities.map_entity import MapEntity
from ..geo.positions import GeoPosition

logger = logging.getLogger(__name__)


class SelectionState(Enum):
    """Selection coordinator states."""
    IDLE = "idle"
    AWAITING_TARGET = "awaiting_target"


class SelectionPlugin(Plugin):
    """Runs the "pick a source, then pick a target" protocol.

    Events:
        entity_source: votes (entity) -> bool; any True marks a source.
        entity_target: votes (entity) -> bool; any True accepts a target.
        target_set: (source, target) when a target is committed.
        selection_changed: (is_active, source_or_None) on every session
            start and end.

    While awaiting a target the host's selecting hook is vetoed, so popups
    and highlighting stay off until the session ends. Clicking any source
    entity while awaiting keeps the pending source unchanged.
    """

    def __init__(self, context: PluginContext) -> None:
        self._context = context
        self._state = SelectionState.IDLE
        self._source: MapEntity | None = None
        self._unsubscribers: list = []
        self._destroyed = False

        self.actions = {
            'start_selection': self.start_selection,
            'cancel_selection': self.cancel_selection,
        }
        self.events = {
            'entity_source': EventChannel('entity_source'),
            'entity_target': EventChannel('entity_target'),
            'target_set': EventChannel('target_set'),
            'selection_changed': EventChannel('selection_changed'),
        }

    def install(self, clicks: ClickRouter) -> None:
        """Subscribe to the host's click interception hooks."""
        if self._unsubscribers:
            return
        self._unsubscribers = [
            clicks.on_click.subscribe(self.on_click),
            clicks.on_selecting.subscribe(self.on_selecting),
            clicks.on_click_prevented.subscribe(self.on_click_prevented),
            clicks.on_selected.subscribe(self.on_selected),
        ]

    @property
    def state(self) -> SelectionState:
        """Current coordinator state."""
        return self._state

    @property
    def source_entity(self) -> MapEntity | None:
        """Source of the pending session, if any."""
        return self._source

    @property
    def is_active(self) -> bool:
        """True while awaiting a target."""
        return self._state is SelectionState.AWAITING_TARGET

    def _is_safe(self) -> bool:
        return is_safe_to_operate(self._context, self._destroyed)

    # --- Actions ---

    def start_selection(self, entity: MapEntity) -> None:
        """Enter target selection with `entity` as the source."""
        if not self._is_safe():
            return
        self._source = entity
        self._state = SelectionState.AWAITING_TARGET
        logger.info("Selection mode entered for %s", entity.id)
        self._emit_selection_changed()

    def cancel_selection(self) -> None:
        """Leave target selection. Does nothing when already idle."""
        if not self._is_safe() or not self.is_active:
            return
        self._end_session("Selection mode cancelled")

    # --- Host hooks ---

    def on_selecting(self, entity: MapEntity, location: GeoPosition | None) -> bool | None:
        """Veto native selection while a session is pending."""
        if not self._is_safe():
            return None
        return not self.is_active

    def on_selected(self, entity: MapEntity | None, location: GeoPosition | None) -> bool | None:
        """Allow every native selection that got past the selecting hook."""
        return True

    def on_click_prevented(self, entity: MapEntity, location: GeoPosition | None) -> bool | None:
        """Handle an entity click whose native selection was vetoed."""
        if not self._is_safe():
            return None

        if self.is_active:
            self._choose_target(entity)
            return False

        # Selection was vetoed elsewhere; still keep popups off sources
        if self.events['entity_source'].vote(entity):
            return False
        return True

    def on_click(self, entity: MapEntity | None, location: GeoPosition | None) -> bool | None:
        """Start a session on a source click, cancel one on an empty-space click."""
        if not self._is_safe():
            return None

        if self.is_active:
            if entity is None:
                self._end_session("Clicked on empty space, cancelling selection")
                return True
            # Only reachable when the host skipped the selecting hook
            self._choose_target(entity)
            return False

        if entity is not None and self.events['entity_source'].vote(entity):
            self.start_selection(entity)
        return True

    # --- Transitions ---

    def _choose_target(self, entity: MapEntity) -> None:
        """Resolve a click on an entity while awaiting a target."""
        source = self._source

        if self.events['entity_source'].vote(entity):
            if source is not None and entity.id != source.id:
                logger.info("Ignoring source %s while choosing a target for %s", entity.id, source.id)
            return

        if not self.events['entity_target'].vote(entity):
            self._end_session(f"Target {entity.id} not acceptable, selection cancelled")
            return

        if source is not None:
            self.events['target_set'].emit(source, entity)
            logger.info("Target set: %s -> %s", source.id, entity.id)

        # A target_set subscriber may already have started or ended a session
        if self._state is SelectionState.AWAITING_TARGET and self._source is source:
            self._end_session(None)

    def _end_session(self, message: str | None) -> None:
        self._state = SelectionState.IDLE
        self._source = None
        if message:
            logger.info(message)
        self._emit_selection_changed()

    def _emit_selection_changed(self) -> None:
        self.events['selection_changed'].emit(self.is_active, self._source)

    # --- Lifecycle ---

    def destroy(self) -> None:
        """Detach from the host hooks and drop any pending session."""
        if self._destroyed:
            return
        self._destroyed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._state = SelectionState.IDLE
        self._source = None
