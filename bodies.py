# bodies.py
import itertools
from typing import List, NamedTuple, Optional, Tuple
import numpy as np

from constants import NDC_MAX, NDC_MIN


_particle_ids = itertools.count(1)


class Instance(NamedTuple):
    """Per-particle record handed to the renderer, in normalized device coordinates."""
    position: Tuple[float, float]
    radius: float


def to_ndc(value, lo, hi, vmin=NDC_MIN, vmax=NDC_MAX):
    """Linear window-to-viewport transform."""
    return vmin + (value - lo) * (vmax - vmin) / (hi - lo)


class Particle:
    """Representing a body and its kinematic state"""

    def __init__(self,
                 position: List[float] | np.ndarray,
                 mass: float,
                 radius: float,
                 velocity: Optional[List[float] | np.ndarray] = None,
                 acceleration: Optional[List[float] | np.ndarray] = None):
        """Creates a particle with a fresh id"""
        if not mass > 0:
            raise ValueError(f"Particle mass must be positive, got {mass}")
        if not radius > 0:
            raise ValueError(f"Particle radius must be positive, got {radius}")

        self.id = next(_particle_ids)
        self.mass = float(mass)
        self.radius = float(radius)
        self.position = np.array(position, dtype=float)
        self.velocity = np.zeros(2) if velocity is None else np.array(velocity, dtype=float)
        self.acceleration = np.zeros(2) if acceleration is None else np.array(acceleration, dtype=float)
        for name in ("position", "velocity", "acceleration"):
            if getattr(self, name).shape != (2,):
                raise ValueError(f"Particle {name} must be a 2-D vector, got {getattr(self, name).tolist()}")

    def __repr__(self):
        return (f"Particle(id={self.id}, position={self.position.tolist()}, "
                f"mass={self.mass}, radius={self.radius})")

    def check_collision(self, other: "Particle") -> bool:
        """True if the two discs touch or overlap."""
        distance = np.linalg.norm(self.position - other.position)
        return distance - (self.radius + other.radius) <= 0

    def compare(self, other: "Particle") -> Tuple["Particle", "Particle"]:
        """Returns (lesser, greater) by mass. On a tie `other` is the lesser."""
        if self.mass < other.mass:
            return self, other
        return other, self

    def copy(self) -> "Particle":
        """Detached copy that keeps this particle's id."""
        clone = Particle.__new__(Particle)
        clone.id = self.id
        clone.mass = self.mass
        clone.radius = self.radius
        clone.position = self.position.copy()
        clone.velocity = self.velocity.copy()
        clone.acceleration = self.acceleration.copy()
        return clone

    def to_instance(self, bounds) -> Instance:
        """Maps position and radius from world space into the renderer's [-1, 1] square."""
        x = to_ndc(self.position[0], bounds.min_x, bounds.max_x)
        y = to_ndc(self.position[1], bounds.min_y, bounds.max_y)
        radius = self.radius * (NDC_MAX - NDC_MIN) / (bounds.max_x - bounds.min_x)
        return Instance((float(x), float(y)), float(radius))
