"""Entry point and viewer loop."""
from __future__ import annotations
import logging
import sys

import pygame

from .config import TITLE, ViewerConfig, AnimationOptions
from .core.world import MapWorld
from .entities.map_entity import MapEntity
from .geo.positions import GeoPosition
from .logging_config import setup_logging
from .plugins import AnimationPlugin, PluginHost, SelectionPlugin, TracerPlugin, tag_vote, wire_transit
from .ui.camera import Camera
from .ui.renderer import Renderer, pick_entity

logger = logging.getLogger(__name__)


def create_initial_world(world: MapWorld) -> None:
    """Seed the map with a few drones and targets."""
    origin = GeoPosition(longitude=34.8, latitude=32.0, height=300.0)

    drones = [
        ("Drone Alpha", -12000, -8000),
        ("Drone Bravo", -15000, 6000),
        ("Drone Charlie", -4000, 14000),
    ]
    for name, east, north in drones:
        world.add(MapEntity(
            name=name,
            position=origin.offset_meters(east=east, north=north),
            tags={"drone"},
        ))

    targets = [
        ("Target North", 9000, 12000),
        ("Target East", 16000, -2000),
        ("Target South", 6000, -14000),
    ]
    for name, east, north in targets:
        position = origin.offset_meters(east=east, north=north)
        world.add(MapEntity(
            name=name,
            position=GeoPosition(position.longitude, position.latitude, 0.0),
            tags={"target"},
        ))


def create_plugins(world: MapWorld, config: ViewerConfig) -> PluginHost:
    """Install the selection, animation and tracer plugins on a world."""
    host = PluginHost(world.context())

    selection = SelectionPlugin(host.context)
    animation = AnimationPlugin(
        host.context,
        AnimationOptions(duration_ms=config.animation_duration_ms),
        on_complete=lambda source_id, target_id: logger.info("Transit complete: %s -> %s", source_id, target_id),
    )
    tracer = TracerPlugin(host.context, config.trace_options)

    host.add("selection", selection)
    host.add("animation", animation)
    host.add("tracer", tracer)

    selection.events['entity_source'].subscribe(tag_vote("drone"))
    selection.events['entity_target'].subscribe(tag_vote("target"))
    wire_transit(selection, animation, tracer)
    return host


def main() -> None:
    """Main entry point."""
    setup_logging()
    config = ViewerConfig()

    pygame.init()
    screen = pygame.display.set_mode((config.screen_width, config.screen_height), pygame.RESIZABLE)
    pygame.display.set_caption(TITLE)
    clock = pygame.time.Clock()

    world = MapWorld(start_ms=float(pygame.time.get_ticks()))
    create_initial_world(world)
    host = create_plugins(world, config)
    selection = host.get("selection")
    animation = host.get("animation")

    camera = Camera(screen_width=config.screen_width, screen_height=config.screen_height)
    renderer = Renderer(screen, camera)

    running = True
    while running:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                running = False

            elif event.type == pygame.VIDEORESIZE:
                screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                renderer.handle_resize(event.w, event.h, screen)

            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    if selection.is_active:
                        selection.cancel_selection()
                    else:
                        running = False
                elif event.key == pygame.K_SPACE:
                    world.toggle_pause()
                elif event.key == pygame.K_c:
                    host.get("tracer").untrace_all()
                elif event.key in (pygame.K_PLUS, pygame.K_EQUALS):
                    world.speed_up()
                elif event.key == pygame.K_MINUS:
                    world.speed_down()

            elif event.type == pygame.MOUSEWHEEL:
                mx, my = pygame.mouse.get_pos()
                camera.zoom_at(mx, my, 1.2 if event.y > 0 else 1.0 / 1.2)

            elif event.type == pygame.MOUSEBUTTONDOWN:
                if event.button == 1:
                    entity = pick_entity(world, camera, *event.pos)
                    location = camera.screen_to_world(*event.pos)
                    world.click(entity.id if entity else None, location)
                elif event.button == 3:
                    camera.start_pan(*event.pos)

            elif event.type == pygame.MOUSEBUTTONUP:
                if event.button == 3:
                    camera.end_pan()

            elif event.type == pygame.MOUSEMOTION:
                if camera.is_panning:
                    camera.update_pan(*event.pos)

        dt_ms = clock.tick(config.fps)
        world.step(dt_ms)

        renderer.render(world, selection, animation, clock.get_fps())
        pygame.display.flip()

    # Cleanup
    host.destroy()
    world.destroy()
    pygame.quit()
    sys.exit(0)


if __name__ == "__main__":
    main()
