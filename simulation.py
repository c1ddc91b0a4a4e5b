# simulation.py
import logging
from enum import Enum
from typing import List, Optional, Tuple
import numpy as np

from bodies import Instance, Particle
from bounding_box import BoundingBox
from constants import (
    BOUNCE_ANGLE,
    BOUNCE_SPEED_SQ_THRESHOLD,
    DEFAULT_THETA,
    DEFAULT_TIME_STEP,
    MERGE_RADIUS_FRACTION,
)
from quadtree import QuadTree

logger = logging.getLogger(__name__)


class ForceMode(Enum):
    """How the contributions of the traversed force sources combine."""

    # Sum every contribution (superposition)
    ACCUMULATE = "accumulate"
    # Each contribution replaces the previous one; the last visited source wins
    OVERWRITE = "overwrite"


class Simulation:
    """
    Gravitational attraction and inelastic merging of 2-D particles.

    The simulation owns its particles. Each call to `step`, `integrate` or
    `resolve_collisions` rebuilds a Barnes-Hut quadtree from the current
    particles; nothing is carried over between calls.

    Usage:
        sim = Simulation(time_step=0.05, theta=0.5)
        sim.add_particle([500, 500], mass=1000, radius=10)
        sim.add_particle([300, 500], mass=1, radius=2, velocity=[0, 2])
        while running:
            sim.step()
            sim.integrate()
            sim.resolve_collisions()
            draw(sim.get_instances())
    """

    def __init__(self, time_step: float = DEFAULT_TIME_STEP, theta: float = DEFAULT_THETA,
                 bounds: Optional[BoundingBox] = None, force_mode: ForceMode = ForceMode.ACCUMULATE):
        if not time_step > 0:
            raise ValueError(f"time_step must be positive, got {time_step}")
        if theta < 0:
            raise ValueError(f"theta must be non-negative, got {theta}")
        self.particles: List[Particle] = []
        self.time_step = float(time_step)
        self.theta = float(theta)
        self.bounds = bounds if bounds is not None else BoundingBox.world()
        self.force_mode = ForceMode(force_mode)

    def __len__(self):
        return len(self.particles)

    def build_tree(self) -> QuadTree:
        return QuadTree.from_points(self.particles, self.bounds)

    def step(self):
        """Computes every particle's acceleration from the quadtree."""
        quadtree = self.build_tree()
        overwrite = self.force_mode is ForceMode.OVERWRITE

        for p in self.particles:
            total = np.array([0.0, 0.0])
            for node in quadtree.iter_sources(p.position, self.theta):
                r_vec = node.center_of_mass - p.position
                dist_sq = np.dot(r_vec, r_vec)
                contribution = (node.total_mass / dist_sq) * (r_vec / np.sqrt(dist_sq))
                if overwrite:
                    p.acceleration = contribution
                else:
                    total += contribution
            if not overwrite:
                p.acceleration = total

    def resolve_collisions(self) -> int:
        """
        Merges every pair of overlapping particles.

        Broad phase uses the quadtree to collect the particles sharing a
        particle's parent cell; narrow phase is the exact disc overlap test.
        Returns the number of merges performed.
        """
        quadtree = self.build_tree()
        removed = set()
        merges = 0

        for leaf, incoming in quadtree.coincident:
            resident = leaf.particle
            survivor = self.merge(resident, incoming)
            removed.add(incoming.id if survivor is resident else resident.id)
            # The leaf must keep pointing at a live particle for the neighbour search
            leaf.particle = survivor
            merges += 1

        for p in list(self.particles):
            if p.id in removed:
                continue
            for other in quadtree.neighbours(p):
                if other.id in removed or p.id in removed:
                    continue
                if p.check_collision(other):
                    survivor = self.merge(p, other)
                    removed.add(other.id if survivor is p else p.id)
                    merges += 1
        return merges

    def merge(self, p1: Particle, p2: Particle) -> Particle:
        """
        Absorbs the lighter particle into the heavier one and returns the survivor.

        The radius grows first and the mass gain is scaled by the grown
        radius; the velocity is weighted by the survivor's mass from before
        the merge.
        """
        lesser, greater = p1.compare(p2)
        greater_mass = greater.mass

        greater.radius += lesser.radius / MERGE_RADIUS_FRACTION
        greater.mass += lesser.mass * greater.radius
        greater.velocity = (greater_mass * greater.velocity + lesser.mass * lesser.velocity) / greater_mass

        self._remove_particle(lesser)
        logger.debug("Merged particle %d into %d", lesser.id, greater.id)
        return greater

    def _remove_particle(self, particle: Particle):
        self.particles = [p for p in self.particles if p is not particle]

    def integrate(self):
        """Semi-implicit Euler with the wall bounce rule."""
        ts = self.time_step
        bounds = self.bounds
        cos_a, sin_a = np.cos(BOUNCE_ANGLE), np.sin(BOUNCE_ANGLE)

        for p in self.particles:
            p.velocity = p.velocity + p.acceleration * ts
            p.position = p.position + p.velocity * ts

            # Point of the disc closest to the wall it is heading for
            speed = np.linalg.norm(p.velocity)
            edge = p.position + (p.velocity / speed) * p.radius if speed > 0 else p.position
            if not bounds.contains(edge):
                p.velocity = p.velocity / 2
                if np.dot(p.velocity, p.velocity) < BOUNCE_SPEED_SQ_THRESHOLD:
                    p.velocity = p.velocity * 2
                x, y = p.velocity
                p.velocity = np.array([x * cos_a - y * sin_a, x * sin_a + y * cos_a])

    def advance(self):
        """One full tick: forces, motion, then collisions."""
        self.step()
        self.integrate()
        self.resolve_collisions()

    def add_particle(self, position, mass: float, radius: float, velocity=None, acceleration=None) -> int:
        """
        Adds a particle and immediately merges anything it overlaps,
        whether or not the simulation is running. Returns the new id.
        """
        particle = Particle(position, mass, radius, velocity, acceleration)
        self.particles.append(particle)
        self.resolve_collisions()
        return particle.id

    def reset(self):
        self.particles.clear()

    def change_time_step(self, delta: float) -> bool:
        """Nudges the time step; a change that would make it non-positive is ignored."""
        new_step = self.time_step + delta
        if new_step > 0:
            self.time_step = new_step
            return True
        logger.debug("Ignoring time step change %+g (would give %g)", delta, new_step)
        return False

    def get_particles(self) -> Tuple[Particle, ...]:
        """Detached copies of the current particles."""
        return tuple(p.copy() for p in self.particles)

    def get_instances(self) -> List[Instance]:
        return [p.to_instance(self.bounds) for p in self.particles]
