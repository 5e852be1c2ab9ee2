"""Bounding-box arithmetic for spatial selectors."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from locatorengine.models import SpatialRelation

DEFAULT_NEAR_DISTANCE = 100.0


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in CSS pixels."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_rect(cls, rect: dict[str, Any]) -> BoundingBox:
        """Build from the dict returned by ``Locator.bounding_box()``."""
        return cls(
            x=float(rect["x"]),
            y=float(rect["y"]),
            width=float(rect["width"]),
            height=float(rect["height"]),
        )

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


def overlaps_vertically(a: BoundingBox, b: BoundingBox) -> bool:
    return a.y < b.bottom and a.bottom > b.y


def overlaps_horizontally(a: BoundingBox, b: BoundingBox) -> bool:
    return a.x < b.right and a.right > b.x


def edge_gap(
    relation: SpatialRelation, candidate: BoundingBox, reference: BoundingBox
) -> float:
    """Distance from the reference's trailing edge to the candidate's leading edge.

    Positive only when the candidate lies strictly beyond the reference.
    """
    if relation == SpatialRelation.RIGHT_OF:
        return candidate.x - reference.right
    if relation == SpatialRelation.LEFT_OF:
        return reference.x - candidate.right
    if relation == SpatialRelation.ABOVE:
        return reference.y - candidate.bottom
    if relation == SpatialRelation.BELOW:
        return candidate.y - reference.bottom
    raise ValueError(f"{relation.value} is not a directional relation")


def center_distance(a: BoundingBox, b: BoundingBox) -> float:
    (ax, ay), (bx, by) = a.center, b.center
    return math.hypot(ax - bx, ay - by)


def satisfies(
    relation: SpatialRelation,
    candidate: BoundingBox,
    reference: BoundingBox,
    max_distance: float | None = None,
) -> bool:
    """Check whether ``candidate`` stands in ``relation`` to ``reference``."""
    if relation == SpatialRelation.NEAR:
        limit = DEFAULT_NEAR_DISTANCE if max_distance is None else max_distance
        return center_distance(candidate, reference) <= limit

    gap = edge_gap(relation, candidate, reference)
    if gap <= 0:
        return False
    if relation in (SpatialRelation.RIGHT_OF, SpatialRelation.LEFT_OF):
        aligned = overlaps_vertically(candidate, reference)
    else:
        aligned = overlaps_horizontally(candidate, reference)
    if not aligned:
        return False
    return max_distance is None or gap <= max_distance
