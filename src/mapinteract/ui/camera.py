"""Camera for pan/zoom navigation over a lon/lat plane."""
from __future__ import annotations
from dataclasses import dataclass

from ..config import VIEW_CENTER, VIEW_SPAN_DEGREES, MIN_ZOOM, MAX_ZOOM, SCREEN_WIDTH, SCREEN_HEIGHT
from ..geo.positions import GeoPosition


@dataclass
class Camera:
    """Plain equirectangular view of the map."""
    # Center in degrees
    longitude: float = VIEW_CENTER[0]
    latitude: float = VIEW_CENTER[1]

    # Zoom level (1.0 = VIEW_SPAN_DEGREES across the screen width)
    zoom: float = 1.0

    # Screen dimensions
    screen_width: int = SCREEN_WIDTH
    screen_height: int = SCREEN_HEIGHT

    # Pan state
    is_panning: bool = False
    pan_start_x: int = 0
    pan_start_y: int = 0
    pan_start_lon: float = 0.0
    pan_start_lat: float = 0.0

    @property
    def pixels_per_degree(self) -> float:
        """Horizontal screen pixels per degree of longitude at the current zoom."""
        return self.screen_width / VIEW_SPAN_DEGREES * self.zoom

    def world_to_screen(self, position: GeoPosition) -> tuple[int, int]:
        """Convert a map position to screen coordinates (pixels)."""
        scale = self.pixels_per_degree
        screen_x = int((position.longitude - self.longitude) * scale + self.screen_width / 2)
        screen_y = int(-(position.latitude - self.latitude) * scale + self.screen_height / 2)  # Y is inverted
        return (screen_x, screen_y)

    def screen_to_world(self, screen_x: int, screen_y: int) -> GeoPosition:
        """Convert screen coordinates (pixels) to a map position."""
        scale = self.pixels_per_degree
        return GeoPosition(
            longitude=(screen_x - self.screen_width / 2) / scale + self.longitude,
            latitude=-(screen_y - self.screen_height / 2) / scale + self.latitude,
        )

    def zoom_at(self, screen_x: int, screen_y: int, factor: float) -> None:
        """Zoom centered on a screen position.

        Args:
            screen_x: Screen X coordinate to zoom at
            screen_y: Screen Y coordinate to zoom at
            factor: Zoom factor (>1 to zoom in, <1 to zoom out)
        """
        before = self.screen_to_world(screen_x, screen_y)
        self.zoom = max(MIN_ZOOM, min(MAX_ZOOM, self.zoom * factor))
        after = self.screen_to_world(screen_x, screen_y)

        # Keep the point under the cursor fixed
        self.longitude += before.longitude - after.longitude
        self.latitude += before.latitude - after.latitude

    def start_pan(self, screen_x: int, screen_y: int) -> None:
        """Start panning from a screen position."""
        self.is_panning = True
        self.pan_start_x = screen_x
        self.pan_start_y = screen_y
        self.pan_start_lon = self.longitude
        self.pan_start_lat = self.latitude

    def update_pan(self, screen_x: int, screen_y: int) -> None:
        """Update pan position."""
        if not self.is_panning:
            return
        scale = self.pixels_per_degree
        self.longitude = self.pan_start_lon - (screen_x - self.pan_start_x) / scale
        self.latitude = self.pan_start_lat + (screen_y - self.pan_start_y) / scale

    def end_pan(self) -> None:
        """End panning."""
        self.is_panning = False

    def handle_resize(self, width: int, height: int) -> None:
        """Update screen dimensions after a window resize."""
        self.screen_width = width
        self.screen_height = height
