"""Entities living on the host map surface."""
from __future__ import annotations
from dataclasses import dataclass, field
from uuid import uuid4

from ..geo.positions import GeoPosition


def new_entity_id() -> str:
    """Generate a unique entity id."""
    return str(uuid4())


@dataclass
class PointGraphic:
    """Numeric styling of a point marker."""
    color: tuple[int, int, int] = (255, 165, 0)
    alpha: float = 1.0  # Gradient alpha (0-1)
    size: float = 5.0  # Pixel size
    opacity: float = 1.0  # Fade in/out multiplier (0-1)

    @property
    def effective_alpha(self) -> float:
        """Alpha actually used when drawing."""
        return self.alpha * self.opacity


@dataclass
class MapEntity:
    """A visual primitive on the map, addressable by a stable id."""
    id: str = field(default_factory=new_entity_id)
    name: str = ""
    position: GeoPosition | None = None
    point: PointGraphic | None = None
    tags: set[str] = field(default_factory=set)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MapEntity):
            return self.id == other.id
        return False
