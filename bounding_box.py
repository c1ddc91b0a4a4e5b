# bounding_box.py
import math
from dataclasses import dataclass
from typing import Sequence

from constants import MAX_X, MAX_Y, MIN_X, MIN_Y


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned square region of world space.

    Quadrants are numbered 0 -> 1 left to right along the top half and
    2 -> 3 left to right along the bottom half (top meaning y above the
    midline).
    """

    min_x: float
    max_x: float
    min_y: float
    max_y: float

    def __post_init__(self):
        if self.max_x < self.min_x or self.max_y < self.min_y:
            raise ValueError(f"Inverted bounding box: {self}")

    @classmethod
    def world(cls, min_x=MIN_X, max_x=MAX_X, min_y=MIN_Y, max_y=MAX_Y) -> "BoundingBox":
        """The world square the simulation runs in."""
        width, height = max_x - min_x, max_y - min_y
        if width <= 0 or not math.isclose(width, height):
            raise ValueError(f"World bounds must be a non-empty square, got {width} x {height}")
        return cls(float(min_x), float(max_x), float(min_y), float(max_y))

    @property
    def cx(self) -> float:
        return (self.min_x + self.max_x) / 2

    @property
    def cy(self) -> float:
        return (self.min_y + self.max_y) / 2

    @property
    def length(self) -> float:
        return self.max_x - self.min_x

    def contains(self, point: Sequence[float]) -> bool:
        """Inclusive on every edge."""
        x, y = point[0], point[1]
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    def quadrant(self, point: Sequence[float]) -> int:
        """Decides which quadrant a point belongs to."""
        x_bit = 1 if point[0] >= self.cx else 0
        # 1 for the bottom half
        y_bit = 1 if point[1] <= self.cy else 0
        return x_bit + (y_bit << 1)

    def child_bb(self, quadrant: int) -> "BoundingBox":
        """The sub-square covering the given quadrant."""
        cx, cy = self.cx, self.cy
        if quadrant == 0:
            return BoundingBox(self.min_x, cx, cy, self.max_y)
        if quadrant == 1:
            return BoundingBox(cx, self.max_x, cy, self.max_y)
        if quadrant == 2:
            return BoundingBox(self.min_x, cx, self.min_y, cy)
        if quadrant == 3:
            return BoundingBox(cx, self.max_x, self.min_y, cy)
        raise ValueError(f"Quadrant must be 0-3, got {quadrant}")
