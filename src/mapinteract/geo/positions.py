"""Geodetic positions and straight-line distance on the WGS84 ellipsoid."""
from __future__ import annotations
import math
from dataclasses import dataclass

# WGS84
EARTH_SEMI_MAJOR_AXIS = 6378137.0
EARTH_FLATTENING = 1 / 298.257223563
EARTH_ECCENTRICITY_SQ = EARTH_FLATTENING * (2 - EARTH_FLATTENING)


@dataclass(frozen=True)
class GeoPosition:
    """Longitude/latitude in degrees, height in meters above the ellipsoid."""
    longitude: float = 0.0
    latitude: float = 0.0
    height: float = 0.0

    def to_cartesian(self) -> tuple[float, float, float]:
        """Convert to earth-centered earth-fixed coordinates (meters)."""
        lon = math.radians(self.longitude)
        lat = math.radians(self.latitude)
        sin_lat = math.sin(lat)
        cos_lat = math.cos(lat)

        # Prime vertical radius of curvature
        n = EARTH_SEMI_MAJOR_AXIS / math.sqrt(1 - EARTH_ECCENTRICITY_SQ * sin_lat * sin_lat)

        x = (n + self.height) * cos_lat * math.cos(lon)
        y = (n + self.height) * cos_lat * math.sin(lon)
        z = (n * (1 - EARTH_ECCENTRICITY_SQ) + self.height) * sin_lat
        return (x, y, z)

    def distance_to(self, other: GeoPosition) -> float:
        """Straight-line (chord) distance to another position in meters."""
        x1, y1, z1 = self.to_cartesian()
        x2, y2, z2 = other.to_cartesian()
        dx = x2 - x1
        dy = y2 - y1
        dz = z2 - z1
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def lerp(self, other: GeoPosition, t: float) -> GeoPosition:
        """Interpolate longitude, latitude and height independently.

        This is a straight line in lon/lat space, not a great-circle path,
        so it is only accurate over short ranges.
        """
        return GeoPosition(
            longitude=self.longitude + (other.longitude - self.longitude) * t,
            latitude=self.latitude + (other.latitude - self.latitude) * t,
            height=self.height + (other.height - self.height) * t,
        )

    def offset_meters(self, east: float = 0.0, north: float = 0.0) -> GeoPosition:
        """Approximate position displaced by a local east/north offset."""
        meters_per_degree_lat = math.pi * EARTH_SEMI_MAJOR_AXIS / 180
        meters_per_degree_lon = meters_per_degree_lat * math.cos(math.radians(self.latitude))
        d_lon = east / meters_per_degree_lon if meters_per_degree_lon else 0.0
        return GeoPosition(
            longitude=self.longitude + d_lon,
            latitude=self.latitude + north / meters_per_degree_lat,
            height=self.height,
        )


class EllipsoidGeodesy:
    """GeoMath implementation backed by GeoPosition.distance_to."""

    def distance(self, a: GeoPosition, b: GeoPosition) -> float:
        """Straight-line distance between two positions in meters."""
        return a.distance_to(b)
