"""Map entities and trace data containers."""
from .map_entity import MapEntity, PointGraphic, new_entity_id
from .trails import TraceCoordinate, EntityTrace

__all__ = [
    'MapEntity', 'PointGraphic', 'new_entity_id',
    'TraceCoordinate', 'EntityTrace',
]
