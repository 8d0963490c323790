"""Error taxonomy for the interaction layer.

None of these reach plugin callers; plugins catch them at each external
effect, log, and carry on.
"""
from __future__ import annotations


class MapInteractError(Exception):
    """Base class for interaction layer errors."""


class MissingEntityError(MapInteractError):
    """A referenced entity id is not present in the entity store."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Entity not found: {entity_id}")
        self.entity_id = entity_id


class UnresolvablePositionError(MapInteractError):
    """The entity exists but has no current position."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Entity has no position: {entity_id}")
        self.entity_id = entity_id


class HostTornDownError(MapInteractError):
    """The host map surface has been destroyed."""
