"""Rendering collaborator for published simulation frames."""

from grav_sim.render.base import Renderer
from grav_sim.render.renderer_2d import Renderer2D

__all__ = ["Renderer", "Renderer2D"]
