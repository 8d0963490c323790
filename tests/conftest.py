"""Shared fixtures for plugin tests."""
import pytest

from mapinteract.core.world import MapWorld
from mapinteract.entities.map_entity import MapEntity
from mapinteract.geo.positions import GeoPosition

ORIGIN = GeoPosition(longitude=34.8, latitude=32.0, height=0.0)


@pytest.fixture
def world():
    """Empty in-memory map host at t=0."""
    return MapWorld()


@pytest.fixture
def context(world):
    return world.context()


@pytest.fixture
def drone(world):
    """A source-capable entity at the origin."""
    return world.add(MapEntity(id="drone-1", name="Drone 1", position=ORIGIN, tags={"drone"}))


@pytest.fixture
def target(world):
    """A target entity 1000 m east of the origin."""
    return world.add(MapEntity(
        id="target-1", name="Target 1",
        position=ORIGIN.offset_meters(east=1000), tags={"target"},
    ))
