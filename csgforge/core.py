import numpy as np
from dataclasses import dataclass
from typing import Any, ClassVar, Tuple

X, Y, Z = np.array([1, 0, 0]), np.array([0, 1, 0]), np.array([0, 0, 1])


class ContractViolation(AssertionError):
    """
    Raised when a scene is built in a way that can never be valid, such as
    combining nodes owned by different scenes or scaling by zero.

    These are defects in the calling code rather than bad input, so they are
    never turned into return values.
    """


# --- Node variants ---
#
# Nodes are plain records stored in a Scene's arena. Operands are arena
# indices, so a node can only refer to slots that existed before it.

@dataclass(frozen=True)
class Sphere:
    radius: float
    operands: ClassVar[Tuple[str, ...]] = ()


@dataclass(frozen=True)
class Box:
    size: Tuple[float, float, float]
    operands: ClassVar[Tuple[str, ...]] = ()

    @property
    def half_size(self) -> np.ndarray:
        return np.array(self.size, dtype=float) / 2.0


@dataclass(frozen=True)
class Union:
    left: int
    right: int
    operands: ClassVar[Tuple[str, ...]] = ('left', 'right')


@dataclass(frozen=True)
class Intersection:
    left: int
    right: int
    operands: ClassVar[Tuple[str, ...]] = ('left', 'right')


@dataclass(frozen=True)
class Difference:
    left: int
    right: int
    operands: ClassVar[Tuple[str, ...]] = ('left', 'right')


@dataclass(frozen=True, eq=False)
class Transform:
    """Maps world-space points into the child's space with `matrix` (already inverted)."""
    child: int
    matrix: np.ndarray
    operands: ClassVar[Tuple[str, ...]] = ('child',)


@dataclass(frozen=True)
class Toplevel:
    child: int
    material: Any
    operands: ClassVar[Tuple[str, ...]] = ('child',)


NODE_TYPES = (Sphere, Box, Union, Intersection, Difference, Transform, Toplevel)
BINARY_TYPES = {'union': Union, 'intersection': Intersection, 'difference': Difference}


@dataclass(frozen=True, repr=False)
class NodeRef:
    """
    A stable handle to a node owned by a Scene.

    Handles stay valid for the whole life of their scene: the arena only grows,
    so the slot a handle points at never moves or changes.
    """
    scene: Any
    index: int

    def __repr__(self):
        return f"<NodeRef {self.kind}#{self.index}>"

    @property
    def node(self):
        """The immutable node record behind this handle."""
        return self.scene._nodes[self.index]

    @property
    def kind(self) -> str:
        return type(self.node).__name__

    @property
    def material(self):
        node = self.node
        if not isinstance(node, Toplevel):
            raise AttributeError(f"{self.kind} nodes carry no material; only Toplevel nodes do.")
        return node.material

    @property
    def children(self) -> Tuple['NodeRef', ...]:
        node = self.node
        return tuple(NodeRef(self.scene, getattr(node, name)) for name in node.operands)

    # --- Evaluation ---
    def distance(self, point):
        """
        Signed distance from `point` to this shape.

        Args:
            point: A single point `(3,)`, which returns a float, or a batch of
                   points `(N, 3)`, which returns an array of `N` distances.
        """
        from .cpu import evaluate
        return evaluate(self.scene, self.index, point)

    def to_callable(self):
        """
        Returns a Python function that takes a NumPy array of points (N, 3)
        and returns an array of distances (N,).

        The function is compiled on first use and shared by later calls, so
        repeated queries on the same handle only pay for evaluation.
        """
        from .cpu import compiled
        return compiled(self.scene, self.index)

    def dump(self) -> str:
        from .io import dump
        return dump(self)

    # --- Boolean Operations ---
    def union(self, *others) -> 'NodeRef':
        from .operations import unite
        return unite(self, *others)

    def intersection(self, *others) -> 'NodeRef':
        from .operations import intersect
        return intersect(self, *others)

    def difference(self, *others) -> 'NodeRef':
        from .operations import subtract
        return subtract(self, *others)

    def __or__(self, other): return self.union(other)
    def __and__(self, other): return self.intersection(other)
    def __sub__(self, other): return self.difference(other)

    # --- Transforms ---
    def transform(self, inverse_matrix) -> 'NodeRef':
        from .transforms import transform
        return transform(self, inverse_matrix)

    def translate(self, offset) -> 'NodeRef':
        from .transforms import translate
        return translate(self, offset)

    def scale(self, factor) -> 'NodeRef':
        from .transforms import scale
        return scale(self, factor)

    def rotate(self, angle: float, axis) -> 'NodeRef':
        from .transforms import rotate
        return rotate(self, angle, axis)

    def xtranslate(self, offset: float) -> 'NodeRef': return self.translate((offset, 0, 0))
    def ytranslate(self, offset: float) -> 'NodeRef': return self.translate((0, offset, 0))
    def ztranslate(self, offset: float) -> 'NodeRef': return self.translate((0, 0, offset))

    def xscale(self, factor: float) -> 'NodeRef': return self.scale((factor, 1, 1))
    def yscale(self, factor: float) -> 'NodeRef': return self.scale((1, factor, 1))
    def zscale(self, factor: float) -> 'NodeRef': return self.scale((1, 1, factor))

    def xrotate(self, angle: float) -> 'NodeRef': return self.rotate(angle, X)
    def yrotate(self, angle: float) -> 'NodeRef': return self.rotate(angle, Y)
    def zrotate(self, angle: float) -> 'NodeRef': return self.rotate(angle, Z)

    def toplevel(self, material) -> 'NodeRef':
        """Registers this shape as an exported root of its scene."""
        return self.scene.add_toplevel(self, material)


def owner_of(ref):
    """Returns the scene that owns `ref`, the only place builders may add nodes."""
    if not isinstance(ref, NodeRef):
        raise TypeError(f"Expected a NodeRef, got {type(ref).__name__}.")
    return ref.scene
