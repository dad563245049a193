import io
import pytest
import numpy as np
from csgforge import Scene, ParseResult, ContractViolation, dump, parse, translation_matrix


def test_dump_primitives(scene):
    assert scene.sphere(1).dump() == "sphere(1.0)"
    assert scene.cube(2).dump() == "cube(2.0)"
    assert scene.box((1, 2, 3)).dump() == "box(1.0, 2.0, 3.0)"

def test_dump_combinators(scene):
    a, b = scene.sphere(1), scene.cube(2)
    assert dump(a | b) == "union(sphere(1.0), cube(2.0))"
    assert dump(a & b) == "intersection(sphere(1.0), cube(2.0))"
    assert dump(a - b) == "difference(sphere(1.0), cube(2.0))"

def test_dump_transform_writes_stored_matrix(scene):
    t = scene.sphere(1).translate((1, 0, 0))
    assert dump(t) == (
        "transform([[1.0, 0.0, 0.0, -1.0], [0.0, 1.0, 0.0, -0.0], "
        "[0.0, 0.0, 1.0, -0.0], [0.0, 0.0, 0.0, 1.0]], sphere(1.0))"
    )

def test_dump_scene_one_record_per_toplevel(scene):
    scene.sphere(1).toplevel('glass')
    scene.cube(2).toplevel(3)
    scene.sphere(0.5).toplevel('two words')
    assert scene.dump() == (
        "toplevel glass = sphere(1.0)\n"
        "toplevel 3 = cube(2.0)\n"
        'toplevel "two words" = sphere(0.5)\n'
    )
    assert str(scene) == scene.dump()

def test_dump_empty_scene(scene):
    assert scene.dump() == ""

def test_write_to_stream(scene):
    scene.sphere(1).toplevel('m')
    out = io.StringIO()
    scene.write(out)
    assert out.getvalue() == "toplevel m = sphere(1.0)\n"

def test_dump_is_pure(scene):
    top = (scene.sphere(1) - scene.cube(1)).toplevel('m')
    count = scene.node_count
    assert scene.dump() == scene.dump()
    assert top.dump() == "toplevel m = difference(sphere(1.0), cube(1.0))"
    assert scene.node_count == count

def test_parse_result_truthiness():
    assert ParseResult()
    assert ParseResult().ok
    failed = ParseResult(False, "boom")
    assert not failed
    assert failed.error == "boom"

def test_parse_simple(scene):
    result = scene.parse("toplevel stone = difference(cube(2), sphere(1.2))")
    assert result
    assert len(scene) == 1
    top = scene.toplevels[0]
    assert top.material == 'stone'
    assert top.distance((0, 0, 0)) == pytest.approx(1.2)

def test_parse_order_and_materials(scene):
    text = """
    # three shapes
    toplevel a = sphere(1);
    toplevel 2 = cube(1)
    toplevel "c d" = box([1, 2, 3])
    """
    assert parse(scene, text)
    assert [t.material for t in scene] == ['a', 2, 'c d']
    assert [t.children[0].kind for t in scene] == ['Sphere', 'Box', 'Box']

def test_parse_from_stream(scene):
    assert scene.parse(io.StringIO("toplevel m = sphere(2)\n"))
    assert scene.toplevels[0].distance((0, 0, 0)) == pytest.approx(-2.0)

def test_parse_let_shares_nodes(scene):
    text = """
    let ball = sphere(1)
    toplevel left = xtranslate(-2, ball)
    toplevel right = xtranslate(2, ball)
    """
    assert scene.parse(text)
    left, right = scene.toplevels
    assert left.children[0].children[0] == right.children[0].children[0]
    assert left.distance((-2, 0, 0)) == pytest.approx(-1.0)
    assert right.distance((2, 0, 0)) == pytest.approx(-1.0)

def test_parse_convenience_transforms(scene, points):
    text = """
    toplevel t = translate([1, 2, 3], cube(1))
    toplevel s = scale([2, 1, 1], sphere(1))
    toplevel r = rotate(0.5, [0, 0, 1], box(1, 2, 3))
    toplevel u = scale(2, sphere(1))
    toplevel z = zrotate(0.5, box(1, 2, 3))
    toplevel y = yscale(3, sphere(1))
    """
    assert scene.parse(text)
    other = Scene()
    expected = [
        other.cube(1).translate((1, 2, 3)),
        other.sphere(1).scale((2, 1, 1)),
        other.box((1, 2, 3)).rotate(0.5, (0, 0, 1)),
        other.sphere(1).scale(2),
        other.box((1, 2, 3)).zrotate(0.5),
        other.sphere(1).yscale(3),
    ]
    for top, ref in zip(scene, expected):
        assert np.allclose(top.distance(points), ref.distance(points))

def test_parse_variadic_operations(scene, points):
    assert scene.parse("toplevel m = union(sphere(1), xtranslate(2, sphere(1)), xtranslate(-2, sphere(1)))")
    other = Scene()
    a = other.sphere(1)
    expected = a | a.xtranslate(2) | a.xtranslate(-2)
    assert np.allclose(scene.toplevels[0].distance(points), expected.distance(points))

def test_round_trip(points):
    original = Scene()
    original.cube(2).translate((1, 0, 0)).toplevel('M')
    copy = Scene()
    assert copy.parse(original.dump())
    assert len(copy) == 1
    assert copy.toplevels[0].material == 'M'
    for p in [(0, 0, 0), (1, 0, 0), (3, 0, 0)]:
        assert copy.toplevels[0].distance(p) == pytest.approx(original.toplevels[0].distance(p), abs=1e-5)
    assert copy.dump() == original.dump()

def test_round_trip_complex_scene(points):
    original = Scene()
    hole = original.sphere(0.6)
    body = original.box((2, 1, 1.5)).rotate(0.3, (1, 1, 0))
    part = (body - hole).scale((1, 2, 0.5)) & original.sphere(2)
    part.toplevel('steel')
    (hole | original.cube(0.2).ztranslate(1)).toplevel(7)
    copy = Scene()
    assert copy.parse(original.dump())
    for a, b in zip(original, copy):
        assert a.material == b.material
        assert np.allclose(a.distance(points), b.distance(points))

def test_round_trip_raw_transform(points):
    original = Scene()
    m = translation_matrix((0.1, 0.2, 0.3)) @ np.diag([1.0, 2.0, 3.0, 1.0])
    original.sphere(1).transform(m).toplevel('raw')
    copy = Scene()
    assert copy.parse(original.dump())
    assert np.array_equal(copy.toplevels[0].children[0].node.matrix, m)

@pytest.mark.parametrize("text,message", [
    ("toplevel m = sphere(1", "unexpected end of input"),
    ("toplevel m = sphere(1) $", "unexpected character"),
    ("toplevel m = torus(1)", "unknown shape or operation 'torus'"),
    ("toplevel m = sphere(-1)", "radius must be positive"),
    ("toplevel m = sphere(1, 2)", "sphere() takes 1 argument(s)"),
    ("toplevel m = cube([1, 2, 3])", "side must be a number"),
    ("toplevel m = box(1, 2)", "box() takes 3 argument(s)"),
    ("toplevel m = union(sphere(1))", "needs at least two shapes"),
    ("toplevel m = union(sphere(1), 2)", "expected a shape"),
    ("toplevel m = scale(0, sphere(1))", "scaling factors must be non-zero"),
    ("toplevel m = xscale(0, sphere(1))", "scaling factors must be non-zero"),
    ("toplevel m = rotate(1, [0, 0, 0], sphere(1))", "rotation axis cannot be zero vector"),
    ("toplevel m = translate([1, 2], sphere(1))", "offset must be a vector of 3 numbers"),
    ("toplevel m = transform([[1, 0, 0, 0]], sphere(1))", "matrix must be a 4x4"),
    ("toplevel m = ball", "undefined name 'ball'"),
    ("let b = sphere(1)\nlet b = cube(1)", "'b' is already defined"),
    ("let b = 3", "must be bound to a shape"),
    ("toplevel m = [1, 2, 3]", "must be a shape"),
    ("toplevel m = sphere(1e999)", "radius must be finite"),
    ("toplevel m = scale(1e-320, sphere(1))", "scaling factors must be non-zero with a finite inverse"),
    ("toplevel m = scale([1, 1e-320, 1], sphere(1))", "scaling factors must be non-zero with a finite inverse"),
    ("toplevel m = zscale(-1e-320, sphere(1))", "scaling factors must be non-zero with a finite inverse"),
])
def test_parse_errors(scene, text, message):
    result = scene.parse(text)
    assert not result
    assert message in result.error

def test_parse_error_reports_position(scene):
    result = scene.parse("toplevel a = sphere(1)\ntoplevel b = torus(1)")
    assert not result
    assert result.line == 2
    assert result.column == 14
    assert result.error.startswith("line 2, column 14:")

def test_failed_parse_registers_nothing(scene):
    scene.sphere(1).toplevel('kept')
    result = scene.parse("toplevel a = sphere(1)\ntoplevel b = sphere(0)")
    assert not result
    assert [t.material for t in scene] == ['kept']
    # The scene stays usable after a failure.
    assert scene.parse("toplevel c = cube(1)")
    assert [t.material for t in scene] == ['kept', 'c']

def test_parse_empty_input(scene):
    assert scene.parse("")
    assert scene.parse("# nothing here\n")
    assert len(scene) == 0

def test_scene_rejection_becomes_failed_result(scene, monkeypatch):
    def broken(radius=1.0):
        raise ContractViolation("no spheres today")
    monkeypatch.setattr(scene, 'sphere', broken)
    result = scene.parse("toplevel a = cube(1)\ntoplevel b = sphere(1)")
    assert not result
    assert "no spheres today" in result.error
    assert result.line == 2
    assert len(scene) == 0

def test_parse_deeply_nested_text(scene):
    depth = 3000
    text = "toplevel m = " + "xtranslate(1, " * depth + "sphere(1)" + ")" * depth
    assert scene.parse(text)
    assert scene.toplevels[0].distance((depth, 0, 0)) == pytest.approx(-1.0)

def test_round_trip_deep_chain():
    original = Scene()
    node = original.sphere(1)
    for i in range(1500):
        node = node | original.sphere(1).xtranslate(i + 3)
    node.toplevel('chain')
    text = original.dump()
    copy = Scene()
    assert copy.parse(text)
    assert copy.dump() == text
    samples = np.array([[0.0, 0, 0], [2.0, 0, 0], [700.5, 0.25, 0]])
    assert np.allclose(copy.toplevels[0].distance(samples), original.toplevels[0].distance(samples))
