"""Pygame viewer layer."""
from .renderer import Renderer, pick_entity
from .camera import Camera

__all__ = ['Renderer', 'Camera', 'pick_entity']
