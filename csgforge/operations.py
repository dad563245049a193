from .core import NodeRef, owner_of


def unite(left: NodeRef, right: NodeRef, *others: NodeRef) -> NodeRef:
    """
    Creates the union of two or more shapes.

    Extra operands fold to the right: `unite(a, b, c)` is `unite(a, unite(b, c))`.
    All operands must belong to the same scene.
    """
    return owner_of(left).unite(left, right, *others)


def intersect(left: NodeRef, right: NodeRef, *others: NodeRef) -> NodeRef:
    """Creates the intersection (common volume) of two or more shapes."""
    return owner_of(left).intersect(left, right, *others)


def subtract(left: NodeRef, right: NodeRef, *others: NodeRef) -> NodeRef:
    """
    Subtracts one or more shapes from `left`.

    `subtract(a, b, c)` removes the union of `b` and `c` from `a`.
    """
    return owner_of(left).subtract(left, right, *others)
