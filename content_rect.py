import logging

from text_result import ContentRect, FitPolicy

logger = logging.getLogger(__name__)


def resolve_content_rect(surface_size, content_size, policy):
    """
    Work out where content of content_size lands on a surface of surface_size.

    FitPolicy.FILL is a pass-through: the renderer crops the content to fill
    the surface before any pixels reach us, so the whole surface is content.
    FitPolicy.FIT letterboxes: the content is scaled to fit and centered.
    Zero or negative dimensions fall back to the full surface.
    """
    surface_width = max(surface_size.width, 0)
    surface_height = max(surface_size.height, 0)
    full_surface = ContentRect(0, 0, surface_width, surface_height)

    if surface_width <= 0 or surface_height <= 0 or content_size.width <= 0 or content_size.height <= 0:
        logger.warning(f"Invalid geometry: surface {tuple(surface_size)}, content {tuple(content_size)}; "
                       f"using the full surface")
        return full_surface

    policy = FitPolicy(policy)
    if policy is FitPolicy.FILL:
        return full_surface

    scale = min(surface_width / content_size.width, surface_height / content_size.height)
    width = content_size.width * scale
    height = content_size.height * scale
    return ContentRect((surface_width - width) / 2, (surface_height - height) / 2, width, height)
