import sys
from csgforge import Scene

SCENE = """
# A bracket: a plate with two holes, and a peg sharing the hole shape.
let hole = zscale(4, sphere(0.3))
let plate = box(3, 1, 0.2)
toplevel steel = difference(plate, xtranslate(-1, hole), xtranslate(1, hole))
toplevel brass = ztranslate(1, hole)
"""

def main():
    scene = Scene()
    text = open(sys.argv[1]).read() if len(sys.argv) > 1 else SCENE
    result = scene.parse(text)
    if not result:
        print(f"ERROR: {result.error}", file=sys.stderr)
        sys.exit(1)

    print(f"SUCCESS: Parsed {len(scene)} toplevel shape(s) from {scene.node_count} nodes.")
    for top in scene:
        print(f"  {top.material}: d(origin) = {top.distance((0, 0, 0)):+.4f}")
    print()
    print(scene.dump(), end="")


if __name__ == "__main__":
    main()
