"""Scale resolution: one factor per booklet so every tune prints at the same size."""
from .errors import EmptyCatalogError


def resolve_scale(images, content_width, allow_upscale=True):
    """
    Return the factor that makes the widest image exactly fill `content_width`.

    The same factor is applied to every image in the booklet. With
    `allow_upscale=False` the factor is capped at 1 so narrow exports are
    never enlarged.
    """
    if not images:
        raise EmptyCatalogError("Cannot resolve a scale for an empty catalog")

    max_width = max(image.width for image in images)
    scale = content_width / max_width
    if not allow_upscale:
        scale = min(1.0, scale)
    return scale
