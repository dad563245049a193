"""
Affine matrices and the transform builders.

A Transform node stores the matrix that takes a *world* point into the child's
own space, which is the inverse of where the child is placed. `translate`,
`scale` and `rotate` do that inversion once, here, so evaluating a transformed
shape is a single matrix product per point. Calling `transform` with a forward
placement matrix silently moves shapes the wrong way.
"""
import numpy as np

from .core import ContractViolation, NodeRef, X, Y, Z, owner_of


# --- Matrix constructors ---

def identity_matrix() -> np.ndarray:
    return np.eye(4)


def translation_matrix(offset) -> np.ndarray:
    m = np.eye(4)
    m[:3, 3] = np.broadcast_to(np.asarray(offset, dtype=float), (3,))
    return m


def scaling_matrix(factors) -> np.ndarray:
    f = np.broadcast_to(np.asarray(factors, dtype=float), (3,))
    return np.diag([f[0], f[1], f[2], 1.0])


def rotation_matrix(angle: float, axis) -> np.ndarray:
    """Right-handed rotation by `angle` radians about `axis` (normalized here)."""
    ax = np.asarray(axis, dtype=float)
    norm = np.linalg.norm(ax)
    if norm == 0:
        raise ContractViolation("Rotation axis cannot be zero vector")
    kx, ky, kz = ax / norm
    c, s = np.cos(angle), np.sin(angle)
    K = np.array([[0, -kz, ky], [kz, 0, -kx], [-ky, kx, 0]])
    m = np.eye(4)
    m[:3, :3] = np.eye(3) + s * K + (1 - c) * (K @ K)
    return m


# --- Builders ---

def transform(node: NodeRef, inverse_matrix) -> NodeRef:
    """
    Wraps `node` with a raw world-to-object matrix.

    Use this directly only if you already hold the inverse of the placement;
    otherwise use scale/rotate/translate.
    """
    return owner_of(node).transform(node, inverse_matrix)


def scale(node: NodeRef, factor) -> NodeRef:
    """
    Scales a shape about the origin.

    Args:
        factor (float or tuple): Uniform factor or per-axis (x, y, z) factors.
                                 No component may be zero.

    Distances are not rescaled, so non-unit factors give a bound rather than
    an exact distance away from the surface.
    """
    f = np.broadcast_to(np.asarray(factor, dtype=float), (3,))
    if np.any(f == 0):
        raise ContractViolation("Scaling factor components must be non-zero")
    return transform(node, scaling_matrix(1.0 / f))


def xscale(node: NodeRef, factor: float) -> NodeRef:
    return scale(node, (factor, 1, 1))


def yscale(node: NodeRef, factor: float) -> NodeRef:
    return scale(node, (1, factor, 1))


def zscale(node: NodeRef, factor: float) -> NodeRef:
    return scale(node, (1, 1, factor))


def rotate(node: NodeRef, angle: float, axis) -> NodeRef:
    """Rotates a shape by `angle` radians about `axis` through the origin."""
    return transform(node, rotation_matrix(-angle, axis))


def xrotate(node: NodeRef, angle: float) -> NodeRef:
    return rotate(node, angle, X)


def yrotate(node: NodeRef, angle: float) -> NodeRef:
    return rotate(node, angle, Y)


def zrotate(node: NodeRef, angle: float) -> NodeRef:
    return rotate(node, angle, Z)


def translate(node: NodeRef, offset) -> NodeRef:
    """Moves a shape by `offset` (x, y, z)."""
    off = np.broadcast_to(np.asarray(offset, dtype=float), (3,))
    return transform(node, translation_matrix(-off))


def xtranslate(node: NodeRef, offset: float) -> NodeRef:
    return translate(node, (offset, 0, 0))


def ytranslate(node: NodeRef, offset: float) -> NodeRef:
    return translate(node, (0, offset, 0))


def ztranslate(node: NodeRef, offset: float) -> NodeRef:
    return translate(node, (0, 0, offset))
