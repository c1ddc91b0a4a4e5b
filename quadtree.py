# quadtree.py
import logging
from typing import Iterable, Iterator, List, Optional, Tuple
import numpy as np

from bodies import Particle
from bounding_box import BoundingBox
from constants import MAX_TREE_DEPTH

logger = logging.getLogger(__name__)


class QuadTree:
    """
    Represents a node in the quadtree.

    A leaf holds exactly one real particle. A subdivided node holds no
    particle; its total_mass and center_of_mass aggregate every particle
    below it. The root node additionally owns `max_depth` and the
    `coincident` list of (leaf, incoming) pairs: particles that could not
    be separated from the leaf's occupant by subdivision.
    """

    def __init__(self, bounding_box: Optional[BoundingBox] = None, max_depth: int = MAX_TREE_DEPTH):
        self._init_node(bounding_box if bounding_box is not None else BoundingBox.world())
        self.max_depth = max_depth
        self.coincident: List[Tuple["QuadTree", Particle]] = []

    def _init_node(self, bounding_box: BoundingBox):
        self.bounding_box = bounding_box
        self.particle: Optional[Particle] = None
        self.children: List[Optional["QuadTree"]] = [None, None, None, None]

        self.total_mass = 0.0
        self.center_of_mass = np.array([0.0, 0.0])

    @classmethod
    def from_points(cls, particles: Iterable[Particle], bounding_box: Optional[BoundingBox] = None,
                    max_depth: int = MAX_TREE_DEPTH) -> "QuadTree":
        """Builds a fresh tree by inserting the particles in order."""
        tree = cls(bounding_box, max_depth=max_depth)
        for particle in particles:
            tree.insert(particle)
        return tree

    @classmethod
    def _child(cls, bounding_box: BoundingBox, particle: Optional[Particle] = None) -> "QuadTree":
        # Below the root: no depth limit or coincident list of its own
        node = cls.__new__(cls)
        node._init_node(bounding_box)
        if particle is not None:
            node.particle = particle
            node.total_mass = particle.mass
            node.center_of_mass = particle.position.copy()
        return node

    def is_subdivided(self) -> bool:
        return any(child is not None for child in self.children)

    def _update_mass(self, particle: Particle):
        """Updates the node's center of mass and total mass."""
        new_total_mass = self.total_mass + particle.mass
        self.center_of_mass = (self.center_of_mass * self.total_mass + particle.position * particle.mass) / new_total_mass
        self.total_mass = new_total_mass

    def insert(self, particle: Particle) -> bool:
        """
        Inserts a particle into the tree rooted at this node.

        Every subdivided node on the way down absorbs the particle's mass
        before the walk continues, so ancestors already account for it
        while the leaf is still being split. Returns False if the particle
        lies outside the root bounding box and was left out.
        """
        position = particle.position
        if not self.bounding_box.contains(position):
            logger.debug("Dropping %r: outside %s", particle, self.bounding_box)
            return False

        if self.total_mass == 0:
            self.particle = particle
            self.total_mass = particle.mass
            self.center_of_mass = position.copy()
            return True

        node = self
        depth = 0
        while node.is_subdivided():
            node._update_mass(particle)
            quadrant = node.bounding_box.quadrant(position)
            child = node.children[quadrant]
            if child is None:
                node.children[quadrant] = QuadTree._child(node.bounding_box.child_bb(quadrant), particle)
                return True
            node = child
            depth += 1

        resident = node.particle
        node._update_mass(particle)

        if np.array_equal(resident.position, position):
            self._force_merge(node, resident, particle)
            return True

        # Split until the resident and the incoming particle land in different quadrants
        node.particle = None
        while True:
            bb = node.bounding_box
            resident_quadrant = bb.quadrant(resident.position)
            incoming_quadrant = bb.quadrant(position)
            if resident_quadrant != incoming_quadrant:
                break
            if depth >= self.max_depth:
                self._force_merge(node, resident, particle)
                return True
            child = QuadTree._child(bb.child_bb(resident_quadrant))
            child.total_mass = node.total_mass
            child.center_of_mass = node.center_of_mass.copy()
            node.children[resident_quadrant] = child
            node = child
            depth += 1

        node.children[resident_quadrant] = QuadTree._child(bb.child_bb(resident_quadrant), resident)
        node.children[incoming_quadrant] = QuadTree._child(bb.child_bb(incoming_quadrant), particle)
        return True

    def _force_merge(self, node: "QuadTree", resident: Particle, incoming: Particle):
        # node keeps the resident as its leaf particle; its aggregate already holds both masses
        node.particle = resident
        self.coincident.append((node, incoming))
        logger.warning("Particles %d and %d cannot be separated within depth %d; forcing a merge",
                       resident.id, incoming.id, self.max_depth)

    def iter_sources(self, point, theta: float) -> Iterator["QuadTree"]:
        """
        Yields the nodes acting as force sources on `point` (Barnes-Hut).

        A node is accepted as a single source if it is a leaf or if
        size / distance < theta; otherwise its children are opened.
        Nodes whose center of mass coincides with `point` are skipped.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            if node.total_mass == 0:
                continue
            s = node.bounding_box.length
            d = np.linalg.norm(node.center_of_mass - point)
            if d == 0:
                continue
            if not node.is_subdivided() or s / d < theta:
                yield node
            else:
                stack.extend(child for child in node.children if child is not None)

    def find_leaf(self, particle: Particle) -> Tuple[Optional["QuadTree"], Optional["QuadTree"]]:
        """Descends by quadrant to the leaf holding `particle`. Returns (leaf, parent)."""
        if not self.bounding_box.contains(particle.position):
            return None, None
        parent = None
        node = self
        while node.is_subdivided():
            child = node.children[node.bounding_box.quadrant(particle.position)]
            if child is None:
                return None, None
            parent, node = node, child
        if node.particle is not particle:
            return None, None
        return node, parent

    def neighbours(self, particle: Particle) -> List[Particle]:
        """
        Broad phase: the particles sharing the parent cell of `particle`'s leaf.

        Only the subtree under the leaf's immediate parent is searched, so
        this is a local search and not a full-tree query.
        """
        leaf, parent = self.find_leaf(particle)
        if leaf is None or parent is None:
            return []
        return [p for p in parent.iter_particles() if p is not particle]

    def iter_nodes(self) -> Iterator["QuadTree"]:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(child for child in node.children if child is not None)

    def iter_particles(self) -> Iterator[Particle]:
        """Every real particle held by a leaf of this subtree."""
        for node in self.iter_nodes():
            if node.particle is not None:
                yield node.particle

    def depth(self) -> int:
        stack = [(self, 0)]
        deepest = 0
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            stack.extend((child, level + 1) for child in node.children if child is not None)
        return deepest
