import numpy as np

DTYPE = np.float64

# --- Primitives ---

def _sphere(node):
    r = node.radius
    return lambda p: np.linalg.norm(p, axis=-1) - r

def _box(node):
    half_size = node.half_size
    def func(p):
        q = np.abs(p) - half_size
        return np.linalg.norm(np.maximum(q, 0.0), axis=-1) + np.minimum(np.max(q, axis=-1), 0.0)
    return func

# --- Combinators ---

def _union(node):
    return np.minimum

def _intersection(node):
    return np.maximum

def _difference(node):
    return lambda a, b: np.maximum(a, -b)

# --- Transforms ---

def _transform(node):
    # Only the affine rows matter; the stored matrix is already world-to-object.
    linear = node.matrix[:3, :3].T.copy()
    offset = node.matrix[:3, 3].copy()
    return lambda p: p @ linear + offset

# --- Dispatch ---

PRIMITIVES = {'Sphere': _sphere, 'Box': _box}
COMBINATORS = {'Union': _union, 'Intersection': _intersection, 'Difference': _difference}

def _compile(scene, index):
    """
    Flattens the graph below `index` into a list of `(func, out, ins)` steps
    over numbered registers. Register 0 holds the query points.

    A node is keyed by its index and the register of the points it is
    evaluated at, so a sub-graph shared under the same transforms is computed
    once. Nodes are visited with an explicit stack, so graph depth is bounded
    only by memory.
    """
    nodes = scene._nodes
    program = []
    distances = {}
    frames = {}
    registers = 1

    stack = [(index, 0)]
    while stack:
        key = stack[-1]
        if key in distances:
            stack.pop()
            continue
        i, points = key
        node = nodes[i]
        node_type = type(node).__name__

        if node_type in PRIMITIVES:
            program.append((PRIMITIVES[node_type](node), registers, (points,)))
            distances[key] = registers
            registers += 1
        elif node_type in COMBINATORS:
            left, right = (node.left, points), (node.right, points)
            pending = [k for k in (right, left) if k not in distances]
            if pending:
                stack.extend(pending)
                continue
            program.append((COMBINATORS[node_type](node), registers, (distances[left], distances[right])))
            distances[key] = registers
            registers += 1
        elif node_type == 'Transform':
            if (i, points) not in frames:
                program.append((_transform(node), registers, (points,)))
                frames[(i, points)] = registers
                registers += 1
            child = (node.child, frames[(i, points)])
            if child not in distances:
                stack.append(child)
                continue
            distances[key] = distances[child]
        elif node_type == 'Toplevel':
            child = (node.child, points)
            if child not in distances:
                stack.append(child)
                continue
            distances[key] = distances[child]
        else:
            raise NotImplementedError(f"No distance implementation for node type '{node_type}'.")
        stack.pop()

    return program, registers, distances[(index, 0)]

def get_callable(scene, index):
    """
    Compiles the node at `index` into a function mapping an (N, 3) array of
    points to an (N,) array of signed distances.

    The returned function keeps its intermediate arrays local to each call,
    so it can be called from many threads.
    """
    program, registers, result = _compile(scene, index)

    def func(p):
        regs = [None] * registers
        regs[0] = p
        for step, out, ins in program:
            regs[out] = step(*[regs[r] for r in ins])
        return regs[result]

    return func

def compiled(scene, index):
    """Like `get_callable`, but reuses the function compiled for `index` earlier."""
    fn = scene._callables.get(index)
    if fn is None:
        # The graph below a node never changes, so a racing compile is harmless.
        fn = scene._callables[index] = get_callable(scene, index)
    return fn

def as_points(points) -> np.ndarray:
    p = np.asarray(points, dtype=DTYPE)
    if p.shape[-1:] != (3,) or p.ndim > 2:
        raise ValueError(f"Points must have shape (3,) or (N, 3), got {p.shape}.")
    return p

def evaluate(scene, index, points):
    """Distance for a single point (returns a float) or an (N, 3) batch."""
    p = as_points(points)
    fn = compiled(scene, index)
    if p.ndim == 1:
        return float(fn(p[None, :])[0])
    return fn(p)
