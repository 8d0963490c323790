"""Geodetic helpers."""
from .positions import GeoPosition, EllipsoidGeodesy

__all__ = ['GeoPosition', 'EllipsoidGeodesy']
