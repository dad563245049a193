import logging
import numpy as np
from typing import Iterator, Tuple

from .core import BINARY_TYPES, Box, ContractViolation, NodeRef, Sphere, Toplevel, Transform

logger = logging.getLogger(__name__)


class Scene:
    """
    Owns every node of a CSG graph and the ordered list of exported roots.

    Nodes are appended to an arena and never removed, so a `NodeRef` handed out
    by a factory stays valid for as long as the scene lives. Combinators only
    reference nodes that already exist, which keeps the graph acyclic. Building
    is single-writer; once built, any number of threads may query distances.
    """

    def __init__(self):
        self._nodes = []
        self._toplevels = []
        self._callables = {}

    def __repr__(self):
        return f"<Scene nodes={len(self._nodes)} toplevels={len(self._toplevels)}>"

    # --- Read-only views ---
    def __iter__(self) -> Iterator[NodeRef]:
        return iter(self.toplevels)

    def __len__(self) -> int:
        return len(self._toplevels)

    @property
    def toplevels(self) -> Tuple[NodeRef, ...]:
        """Exported roots in registration order."""
        return tuple(NodeRef(self, i) for i in self._toplevels)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def node(self, index: int) -> NodeRef:
        if not 0 <= index < len(self._nodes):
            raise IndexError(f"Scene has no node #{index}.")
        return NodeRef(self, index)

    def owns(self, ref) -> bool:
        return isinstance(ref, NodeRef) and ref.scene is self and 0 <= ref.index < len(self._nodes)

    # --- Arena ---
    def _make(self, node) -> NodeRef:
        self._nodes.append(node)
        return NodeRef(self, len(self._nodes) - 1)

    def _own(self, ref) -> int:
        if not isinstance(ref, NodeRef):
            raise TypeError(f"Expected a NodeRef, got {type(ref).__name__}.")
        if not self.owns(ref):
            raise ContractViolation(f"{ref!r} belongs to a different scene; nodes cannot be shared across scenes.")
        return ref.index

    # --- Primitives ---
    def create_primitive(self, kind: str, *params) -> NodeRef:
        factories = {'sphere': self.sphere, 'cube': self.cube, 'box': self.box}
        if kind not in factories:
            raise ValueError(f"Unknown primitive '{kind}'. Expected one of {sorted(factories)}.")
        return factories[kind](*params)

    def sphere(self, radius: float = 1.0) -> NodeRef:
        """Creates a sphere centered at the origin."""
        radius = float(radius)
        if not (np.isfinite(radius) and radius > 0):
            raise ContractViolation(f"Sphere radius must be finite and positive, got {radius!r}.")
        return self._make(Sphere(radius))

    def cube(self, side: float = 1.0) -> NodeRef:
        """Creates an axis-aligned cube of edge length `side`, centered at the origin."""
        return self.box(side)

    def box(self, size=1.0) -> NodeRef:
        """
        Creates an axis-aligned box centered at the origin.

        Args:
            size (float or tuple): Full edge lengths. A float creates a cube,
                                   a tuple specifies (width, height, depth).
        """
        s = np.broadcast_to(np.asarray(size, dtype=float), (3,))
        if not (np.all(np.isfinite(s)) and np.all(s > 0)):
            raise ContractViolation(f"Box size must be finite and positive, got {tuple(s.tolist())}.")
        return self._make(Box(tuple(float(v) for v in s)))

    # --- Combinators ---
    def combine(self, kind: str, left: NodeRef, right: NodeRef) -> NodeRef:
        if kind not in BINARY_TYPES:
            raise ValueError(f"Unknown operation '{kind}'. Expected one of {sorted(BINARY_TYPES)}.")
        l, r = self._own(left), self._own(right)
        return self._make(BINARY_TYPES[kind](l, r))

    def _fold(self, kind: str, indices) -> int:
        # Right fold: [a, b, c] -> kind(a, kind(b, c)).
        acc = indices[-1]
        for i in reversed(indices[:-1]):
            acc = self._make(BINARY_TYPES[kind](i, acc)).index
        return acc

    def unite(self, left: NodeRef, right: NodeRef, *others: NodeRef) -> NodeRef:
        indices = [self._own(ref) for ref in (left, right) + others]
        return NodeRef(self, self._fold('union', indices))

    def intersect(self, left: NodeRef, right: NodeRef, *others: NodeRef) -> NodeRef:
        indices = [self._own(ref) for ref in (left, right) + others]
        return NodeRef(self, self._fold('intersection', indices))

    def subtract(self, left: NodeRef, right: NodeRef, *others: NodeRef) -> NodeRef:
        """Removes every other operand from `left`."""
        indices = [self._own(ref) for ref in (left, right) + others]
        rest = self._fold('union', indices[1:])
        return self._make(BINARY_TYPES['difference'](indices[0], rest))

    def transform(self, child: NodeRef, inverse_matrix) -> NodeRef:
        """
        Wraps `child` in a transform node.

        The matrix must map world space to the child's space, i.e. it is the
        inverse of the placement you want. Prefer `translate`, `scale` and
        `rotate`, which invert their parameters for you. Invertibility is not
        checked.
        """
        index = self._own(child)
        m = np.array(inverse_matrix, dtype=float)
        if m.shape != (4, 4):
            raise ContractViolation(f"Transform matrix must be 4x4, got shape {m.shape}.")
        if not np.all(np.isfinite(m)):
            raise ContractViolation("Transform matrix must only contain finite values.")
        m.setflags(write=False)
        return self._make(Transform(index, m))

    # --- Export ---
    def add_toplevel(self, root: NodeRef, material) -> NodeRef:
        """Registers `root` as an exported shape tagged with `material`."""
        ref = self._make(Toplevel(self._own(root), material))
        self._toplevels.append(ref.index)
        logger.debug("Registered toplevel #%d (material=%r, root=%r)", len(self._toplevels) - 1, material, root)
        return ref

    def dump(self) -> str:
        from .io import dump
        return dump(self)

    def write(self, stream):
        from .io import write
        write(self, stream)

    def __str__(self):
        return self.dump()

    def parse(self, source):
        """
        Fills the scene from a textual description.

        Args:
            source (str or file-like): The text, or a stream to read it from.

        Returns:
            ParseResult: Truthy on success, otherwise carries the first error.
        """
        from .io import parse
        return parse(self, source)
