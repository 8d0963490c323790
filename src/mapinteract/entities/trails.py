"""Trace data containers for entity position history."""
from __future__ import annotations
from dataclasses import dataclass, field

from ..config import TraceOptions
from ..geo.positions import GeoPosition


@dataclass
class TraceCoordinate:
    """A single recorded point in an entity's trace."""
    id: str  # Id of the marker entity drawn for this point
    position: GeoPosition
    timestamp_created: float  # Host clock (ms) when the point was recorded
    birth_index: int  # Trace length when the point was recorded
    fade_in_progress: float = 0.0  # 0-1
    fade_out_started: bool = False
    fade_out_started_at: float | None = None
    fade_out_progress: float = 0.0  # 0-1

    def age(self, now: float) -> float:
        """Milliseconds since the point was recorded."""
        return now - self.timestamp_created

    @property
    def opacity(self) -> float:
        """Visibility multiplier from fade in and fade out."""
        return self.fade_in_progress * (1.0 - self.fade_out_progress)


@dataclass
class EntityTrace:
    """Rolling position history of one traced entity.

    Coordinates are ordered oldest (tail, index 0) to newest (head).
    """
    entity_id: str
    options: TraceOptions
    coordinates: list[TraceCoordinate] = field(default_factory=list)
    last_style_update: float | None = None
    last_removal: float | None = None

    @property
    def head(self) -> TraceCoordinate | None:
        """Newest coordinate."""
        return self.coordinates[-1] if self.coordinates else None

    @property
    def tail(self) -> TraceCoordinate | None:
        """Oldest coordinate."""
        return self.coordinates[0] if self.coordinates else None

    def find(self, coord_id: str) -> TraceCoordinate | None:
        """Look up a coordinate by marker id."""
        for coord in self.coordinates:
            if coord.id == coord_id:
                return coord
        return None

    def index_of(self, coord_id: str) -> int:
        """Current array index of a coordinate, or -1."""
        for index, coord in enumerate(self.coordinates):
            if coord.id == coord_id:
                return index
        return -1

    def __len__(self) -> int:
        return len(self.coordinates)
