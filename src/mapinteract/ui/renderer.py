"""Draws map entities, trace markers and plugin status."""
from __future__ import annotations
import math
from typing import TYPE_CHECKING

import pygame

from ..config import COLORS, TRACE_ENTITY_PREFIX
from ..geo.positions import GeoPosition
from .camera import Camera

if TYPE_CHECKING:
    from ..core.world import MapWorld
    from ..entities.map_entity import MapEntity
    from ..plugins.animation import AnimationPlugin
    from ..plugins.selection import SelectionPlugin

ENTITY_RADIUS = 7
PICK_RADIUS = 12


def pick_entity(world: MapWorld, camera: Camera, screen_x: int, screen_y: int) -> MapEntity | None:
    """Return the nearest non-trace entity under the cursor, if any."""
    best = None
    best_dist = PICK_RADIUS
    for entity in world.entities():
        if entity.position is None or entity.id.startswith(TRACE_ENTITY_PREFIX):
            continue
        ex, ey = camera.world_to_screen(entity.position)
        dist = math.hypot(ex - screen_x, ey - screen_y)
        if dist <= best_dist:
            best = entity
            best_dist = dist
    return best


class Renderer:
    """Main renderer for the viewer."""

    def __init__(self, screen: pygame.Surface, camera: Camera) -> None:
        self.screen = screen
        self.camera = camera

        pygame.font.init()
        self.font = pygame.font.Font(None, 20)

    def handle_resize(self, width: int, height: int, screen: pygame.Surface) -> None:
        self.screen = screen
        self.camera.handle_resize(width, height)

    def render(
        self,
        world: MapWorld,
        selection: SelectionPlugin,
        animation: AnimationPlugin,
        fps: float,
    ) -> None:
        """Render one frame."""
        self.screen.fill(COLORS['background'])
        self._draw_grid()

        # Trace markers first so they sit behind entities
        entities = list(world.entities())
        for entity in entities:
            if entity.id.startswith(TRACE_ENTITY_PREFIX):
                self._draw_trace_point(entity)

        source_id = selection.source_entity.id if selection.source_entity else None
        for entity in entities:
            if not entity.id.startswith(TRACE_ENTITY_PREFIX):
                self._draw_entity(entity, entity.id == world.selected_entity_id, entity.id == source_id)

        self._draw_status(world, selection, animation, fps)

    def _draw_grid(self) -> None:
        """Draw a graticule every 0.1 degrees."""
        step = 0.1
        top_left = self.camera.screen_to_world(0, 0)
        bottom_right = self.camera.screen_to_world(self.camera.screen_width, self.camera.screen_height)

        lon = math.floor(top_left.longitude / step) * step
        while lon <= bottom_right.longitude:
            x = self.camera.world_to_screen(GeoPosition(longitude=lon, latitude=0))[0]
            pygame.draw.line(self.screen, COLORS['grid'], (x, 0), (x, self.camera.screen_height))
            lon += step

        lat = math.floor(bottom_right.latitude / step) * step
        while lat <= top_left.latitude:
            y = self.camera.world_to_screen(GeoPosition(longitude=0, latitude=lat))[1]
            pygame.draw.line(self.screen, COLORS['grid'], (0, y), (self.camera.screen_width, y))
            lat += step

    def _draw_trace_point(self, entity: MapEntity) -> None:
        point = entity.point
        if entity.position is None or point is None:
            return
        alpha = int(max(0.0, min(1.0, point.effective_alpha)) * 255)
        radius = max(1, int(round(point.size)))
        if alpha <= 0:
            return

        x, y = self.camera.world_to_screen(entity.position)
        surface = pygame.Surface((radius * 2, radius * 2), pygame.SRCALPHA)
        color = tuple(int(c) for c in point.color)
        pygame.draw.circle(surface, (*color, alpha), (radius, radius), radius)
        self.screen.blit(surface, (x - radius, y - radius))

    def _draw_entity(self, entity: MapEntity, selected: bool, is_source: bool) -> None:
        if entity.position is None:
            return
        x, y = self.camera.world_to_screen(entity.position)

        if is_source:
            color = COLORS['source']
        elif "target" in entity.tags:
            color = COLORS['target']
        else:
            color = COLORS['entity']
        pygame.draw.circle(self.screen, color, (x, y), ENTITY_RADIUS)

        if selected or is_source:
            pygame.draw.circle(self.screen, COLORS['selected'], (x, y), ENTITY_RADIUS + 4, 1)

        if entity.name:
            label = self.font.render(entity.name, True, COLORS['ui_text'])
            self.screen.blit(label, (x + ENTITY_RADIUS + 4, y - 8))

    def _draw_status(
        self,
        world: MapWorld,
        selection: SelectionPlugin,
        animation: AnimationPlugin,
        fps: float,
    ) -> None:
        """Draw a status line at the bottom of the screen."""
        if selection.is_active and selection.source_entity is not None:
            mode = f"Choose a target for {selection.source_entity.name or selection.source_entity.id}"
        else:
            mode = "Click a drone to start"

        state = animation.state
        if state.is_animating:
            mode += f"  |  transit {state.progress * 100:.0f}%"
        if world.paused:
            mode += "  |  PAUSED"
        elif world.speed != 1:
            mode += f"  |  {world.speed:g}x"

        text = f"{mode}  |  {fps:.0f} fps"
        surface = self.font.render(text, True, COLORS['ui_text'])
        self.screen.blit(surface, (10, self.camera.screen_height - 24))
