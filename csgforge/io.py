"""
Text boundary of a scene: `dump` renders nodes and scenes, `parse` reads them back.

One record per exported shape::

    let hole = sphere(1.2)
    toplevel stone = difference(cube(2.0), hole)

Transforms are always written as `transform(matrix, shape)` with the stored
(world-to-object) matrix, so dumping and re-parsing reproduces the same
distance field exactly.
"""
import ast
import json
import logging
import math
import re
from functools import lru_cache

import numpy as np
from lark import Lark, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError
from lark.visitors import Transformer_NonRecursive

from .core import NodeRef, Toplevel
from .grammar import CSG_GRAMMAR, KEYWORDS
from . import transforms

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*\Z')


class ParseResult:
    """Outcome of `parse`: truthy on success, otherwise carries the first error."""

    def __init__(self, ok: bool = True, error: str = '', line: int = None, column: int = None):
        self.ok = ok
        self.error = error
        self.line = line
        self.column = column

    def __bool__(self):
        return self.ok

    def __repr__(self):
        if self.ok:
            return "ParseResult(ok=True)"
        return f"ParseResult(ok=False, error={self.error!r})"


class SceneSyntaxError(Exception):
    """Semantic error in a scene description, reported through ParseResult."""

    def __init__(self, message: str, line: int = None, column: int = None):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


# --- Dump ---

def _format_number(v) -> str:
    return repr(float(v))

def _format_material(material) -> str:
    if isinstance(material, int) and not isinstance(material, bool):
        return str(material)
    text = str(material)
    if _NAME_RE.match(text) and text not in KEYWORDS:
        return text
    return json.dumps(text)

def _render(nodes, index, out):
    """Appends the text of the node at `index` to `out`, without recursing."""
    stack = [index]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
            continue
        node = nodes[item]
        node_type = type(node).__name__

        if node_type == 'Sphere':
            out.append(f"sphere({_format_number(node.radius)})")
        elif node_type == 'Box':
            x, y, z = node.size
            if x == y == z:
                out.append(f"cube({_format_number(x)})")
            else:
                out.append(f"box({_format_number(x)}, {_format_number(y)}, {_format_number(z)})")
        elif node_type in ('Union', 'Intersection', 'Difference'):
            out.append(f"{node_type.lower()}(")
            stack.extend([")", node.right, ", ", node.left])
        elif node_type == 'Transform':
            rows = ", ".join("[" + ", ".join(_format_number(v) for v in row) + "]" for row in node.matrix)
            out.append(f"transform([{rows}], ")
            stack.extend([")", node.child])
        elif node_type == 'Toplevel':
            # Nested toplevels evaluate as their child.
            stack.append(node.child)
        else:
            raise NotImplementedError(f"No text form for node type '{node_type}'.")
    return out

def dump(obj) -> str:
    """
    Renders a node or a whole scene as text.

    A handle renders as a single expression (a Toplevel handle as its full
    `toplevel` record). A scene renders every Toplevel in registration order,
    one newline-terminated record each.
    """
    if isinstance(obj, NodeRef):
        nodes = obj.scene._nodes
        node = nodes[obj.index]
        if isinstance(node, Toplevel):
            out = [f"toplevel {_format_material(node.material)} = "]
            return "".join(_render(nodes, node.child, out))
        return "".join(_render(nodes, obj.index, []))
    return "".join(dump(ref) + "\n" for ref in obj)

def write(scene, stream):
    """Writes `dump(scene)` to a text stream."""
    stream.write(dump(scene))


# --- Parse ---

@lru_cache(maxsize=None)
def get_parser() -> Lark:
    return Lark(CSG_GRAMMAR, parser='lalr', propagate_positions=True)


def _position(token):
    return getattr(token, 'line', None), getattr(token, 'column', None)


class _SceneBuilder(Transformer_NonRecursive):
    """
    Turns a parse tree into scene nodes, checking every argument first.

    Trees are walked without recursion, so nesting depth is not limited by the
    interpreter stack.
    """

    def __init__(self, scene):
        super().__init__()
        self.scene = scene
        self.bindings = {}
        self.toplevels = []

    # --- Argument checks ---
    def _fail(self, message, token=None):
        raise SceneSyntaxError(message, *_position(token))

    def _number(self, value, what, name):
        if not isinstance(value, float):
            self._fail(f"{name}(): {what} must be a number", name)
        if not np.isfinite(value):
            self._fail(f"{name}(): {what} must be finite", name)
        return value

    def _positive(self, value, what, name):
        if self._number(value, what, name) <= 0:
            self._fail(f"{name}(): {what} must be positive, got {value!r}", name)
        return value

    def _vector(self, value, what, name, length=3):
        if not isinstance(value, list) or len(value) != length:
            self._fail(f"{name}(): {what} must be a vector of {length} numbers", name)
        return [self._number(v, what, name) for v in value]

    def _invertible(self, factor, name):
        # Scales are stored as 1/factor, which must stay finite.
        if factor == 0 or not math.isfinite(1.0 / factor):
            self._fail(f"{name}(): scaling factors must be non-zero with a finite inverse, got {factor!r}", name)
        return factor

    def _shape(self, value, name):
        if not isinstance(value, NodeRef):
            self._fail(f"{name}(): expected a shape, got {_describe(value)}", name)
        return value

    def _arity(self, args, count, name, signature):
        if len(args) != count:
            self._fail(f"{name}() takes {count} argument(s) {signature}, got {len(args)}", name)

    # --- Shapes ---
    def _sphere(self, name, args):
        self._arity(args, 1, name, "(radius)")
        return self.scene.sphere(self._positive(args[0], "radius", name))

    def _cube(self, name, args):
        self._arity(args, 1, name, "(side)")
        return self.scene.cube(self._positive(args[0], "side", name))

    def _box(self, name, args):
        if len(args) == 1:
            size = self._vector(args[0], "size", name) if isinstance(args[0], list) else [args[0]] * 3
        else:
            self._arity(args, 3, name, "(x, y, z)")
            size = list(args)
        for v in size:
            self._positive(v, "size", name)
        return self.scene.box(size)

    def _combinator(self, name, args):
        if len(args) < 2:
            self._fail(f"{name}() needs at least two shapes, got {len(args)}", name)
        shapes = [self._shape(a, name) for a in args]
        method = {'union': self.scene.unite, 'intersection': self.scene.intersect,
                  'difference': self.scene.subtract}[str(name)]
        return method(*shapes)

    def _transform(self, name, args):
        self._arity(args, 2, name, "(matrix, shape)")
        rows = args[0]
        if not isinstance(rows, list) or len(rows) != 4:
            self._fail(f"{name}(): matrix must be a 4x4 nested vector", name)
        matrix = [self._vector(row, "matrix row", name, length=4) for row in rows]
        return transforms.transform(self._shape(args[1], name), matrix)

    def _translate(self, name, args):
        self._arity(args, 2, name, "(offset, shape)")
        return transforms.translate(self._shape(args[1], name), self._vector(args[0], "offset", name))

    def _axis_translate(self, name, args):
        self._arity(args, 2, name, "(offset, shape)")
        offset = self._number(args[0], "offset", name)
        return getattr(transforms, str(name))(self._shape(args[1], name), offset)

    def _scale(self, name, args):
        self._arity(args, 2, name, "(factor, shape)")
        factor = args[0]
        factors = self._vector(factor, "factor", name) if isinstance(factor, list) else [self._number(factor, "factor", name)]
        for f in factors:
            self._invertible(f, name)
        return transforms.scale(self._shape(args[1], name), factors if len(factors) == 3 else factors[0])

    def _axis_scale(self, name, args):
        self._arity(args, 2, name, "(factor, shape)")
        self._invertible(self._number(args[0], "factor", name), name)
        return getattr(transforms, str(name))(self._shape(args[1], name), args[0])

    def _rotate(self, name, args):
        self._arity(args, 3, name, "(angle, axis, shape)")
        angle = self._number(args[0], "angle", name)
        axis = self._vector(args[1], "axis", name)
        if not any(axis):
            self._fail(f"{name}(): rotation axis cannot be zero vector", name)
        return transforms.rotate(self._shape(args[2], name), angle, axis)

    def _axis_rotate(self, name, args):
        self._arity(args, 2, name, "(angle, shape)")
        angle = self._number(args[0], "angle", name)
        return getattr(transforms, str(name))(self._shape(args[1], name), angle)

    SHAPES = {
        'sphere': _sphere, 'cube': _cube, 'box': _box,
        'union': _combinator, 'intersection': _combinator, 'difference': _combinator,
        'transform': _transform,
        'translate': _translate, 'xtranslate': _axis_translate,
        'ytranslate': _axis_translate, 'ztranslate': _axis_translate,
        'scale': _scale, 'xscale': _axis_scale, 'yscale': _axis_scale, 'zscale': _axis_scale,
        'rotate': _rotate, 'xrotate': _axis_rotate, 'yrotate': _axis_rotate, 'zrotate': _axis_rotate,
    }

    # --- Tree callbacks ---
    def number(self, items):
        return float(items[0])

    def vector(self, items):
        return list(items)

    def reference(self, items):
        (name,) = items
        if str(name) not in self.bindings:
            self._fail(f"undefined name '{name}'", name)
        return self.bindings[str(name)]

    def call(self, items):
        name, args = items[0], items[1:]
        builder = self.SHAPES.get(str(name))
        if builder is None:
            self._fail(f"unknown shape or operation '{name}'", name)
        return builder(self, name, args)

    def material_name(self, items):
        return str(items[0])

    def material_int(self, items):
        return int(items[0])

    def material_string(self, items):
        return ast.literal_eval(items[0])

    @v_args(meta=True)
    def binding(self, meta, items):
        name, value = items
        if not isinstance(value, NodeRef):
            self._fail(f"'{name}' must be bound to a shape, got {_describe(value)}", name)
        if str(name) in self.bindings:
            self._fail(f"'{name}' is already defined", name)
        self.bindings[str(name)] = value

    @v_args(meta=True)
    def toplevel(self, meta, items):
        material, value = items
        if not isinstance(value, NodeRef):
            raise SceneSyntaxError(f"toplevel {material!r} must be a shape, got {_describe(value)}",
                                   getattr(meta, 'line', None), getattr(meta, 'column', None))
        self.toplevels.append((value, material))


def _describe(value) -> str:
    if isinstance(value, list):
        return "a vector"
    if isinstance(value, float):
        return f"the number {value!r}"
    return type(value).__name__


def _describe_unexpected(e: UnexpectedInput) -> str:
    if isinstance(e, UnexpectedCharacters):
        return f"unexpected character {e.char!r}"
    if isinstance(e, UnexpectedEOF):
        return "unexpected end of input"
    if isinstance(e, UnexpectedToken):
        if e.token.type == '$END':
            return "unexpected end of input"
        expected = ", ".join(sorted(e.expected))
        return f"unexpected '{e.token}', expected one of: {expected}"
    return str(e)


def _failure(message, line=None, column=None) -> ParseResult:
    if line is not None and line > 0:
        message = f"line {line}, column {column}: {message}"
    else:
        line = column = None
    logger.debug("Scene parse failed: %s", message)
    return ParseResult(False, message, line, column)


def parse(scene, source) -> ParseResult:
    """
    Fills `scene` from a textual description.

    Bad input never raises: every error comes back as a falsy ParseResult.
    Toplevels are registered only once the whole input has been read, so a
    failed parse leaves the scene's export list untouched. Nodes built before
    the failure stay in the arena, unreferenced.

    Args:
        scene (Scene): The scene to populate.
        source (str or file-like): The text, or a stream to read it from.
    """
    text = source if isinstance(source, str) else source.read()
    builder = _SceneBuilder(scene)
    try:
        tree = get_parser().parse(text)
        builder.transform(tree)
    except UnexpectedInput as e:
        return _failure(_describe_unexpected(e), getattr(e, 'line', None), getattr(e, 'column', None))
    except VisitError as e:
        err = e.orig_exc
        if isinstance(err, SceneSyntaxError):
            return _failure(err.message, err.line, err.column)
        # Anything the scene itself rejects is still bad input here.
        line, column = _position(getattr(e.obj, 'meta', e.obj))
        return _failure(f"{e.rule}: {err}", line, column)
    except RecursionError:
        return _failure("scene is nested too deeply")

    for root, material in builder.toplevels:
        scene.add_toplevel(root, material)
    logger.debug("Parsed %d toplevel(s) into %r", len(builder.toplevels), scene)
    return ParseResult()
