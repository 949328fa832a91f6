"""Coarse shape labels from a region's fill ratio and aspect ratio."""

from typing import Callable, Tuple

from floodshape.models import Region

SHAPE_NONE = "none"

SHAPE_LABELS = (
    "square",
    "rectangle",
    "circle",
    "ellipse",
    "parallelogram",
    "trapezium",
    "triangle",
    "crescent",
    SHAPE_NONE,
)

# (predicate(fill, aspect), label), most restrictive first. The last rule
# always matches, so every non-empty region gets a label.
SHAPE_RULES: Tuple[Tuple[Callable[[float, float], bool], str], ...] = (
    (lambda fill, aspect: fill >= 0.90 and aspect <= 1.15, "square"),
    (lambda fill, aspect: fill >= 0.90 and aspect <= 3.0, "rectangle"),
    (lambda fill, aspect: fill >= 0.70 and aspect <= 1.15, "circle"),
    (lambda fill, aspect: fill >= 0.60 and aspect <= 3.0, "ellipse"),
    (lambda fill, aspect: fill >= 0.45 and aspect <= 5.0, "parallelogram"),
    (lambda fill, aspect: fill >= 0.30 and aspect <= 8.0, "trapezium"),
    (lambda fill, aspect: fill >= 0.20, "triangle"),
    (lambda fill, aspect: True, "crescent"),
)


def shape_ratios(pixel_count: int, width: int, height: int) -> Tuple[float, float]:
    """Return (fill, aspect) for a box of width x height holding pixel_count pixels."""
    fill = pixel_count / float(width * height)
    aspect = max(width, height) / float(min(width, height))
    return fill, aspect


def classify_dimensions(pixel_count: int, width: int, height: int) -> str:
    if pixel_count <= 0 or width <= 0 or height <= 0:
        return SHAPE_NONE
    fill, aspect = shape_ratios(pixel_count, width, height)
    for predicate, label in SHAPE_RULES:
        if predicate(fill, aspect):
            return label
    return "crescent"


def classify(region: Region) -> str:
    """Label a region; ``none`` for an empty one."""
    return classify_dimensions(region.pixel_count, region.width, region.height)
