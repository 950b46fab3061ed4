"""Rendering utilities for rotation cards."""

from salmonbot.rendering.composer import AssetLoadError, Compositor, RenderError
from salmonbot.rendering.render_spec import RenderSpec

__all__ = ["AssetLoadError", "Compositor", "RenderError", "RenderSpec"]
