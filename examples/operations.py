import sys
import numpy as np
from csgforge import Scene, Z

def union_example(scene):
    """A sphere and a box joined together."""
    s = scene.sphere(0.8)
    b = scene.box((1.5, 0.5, 0.5))
    return s | b

def intersection_example(scene):
    """A lens shape created by intersecting two spheres."""
    s1 = scene.sphere(1.0).translate((-0.5, 0, 0))
    s2 = scene.sphere(1.0).translate((0.5, 0, 0))
    return s1 & s2

def difference_example(scene):
    """A box with a sphere carved out of it."""
    b = scene.cube(1.5)
    s = scene.sphere(1.0)
    return b - s

def turned_example(scene):
    """A long bar, stretched and turned a quarter around Z."""
    bar = scene.box((2.0, 0.25, 0.25)).scale((1.5, 1, 1))
    return bar.rotate(np.pi / 2, Z)

def main():
    examples = {
        "union": union_example,
        "intersection": intersection_example,
        "difference": difference_example,
        "turned": turned_example,
    }

    if len(sys.argv) < 2:
        print("\nPlease provide the name of an example to run.")
        print("Available examples:")
        for key in examples:
            print(f"  - {key}")
        print(f"\nUsage: python {sys.argv[0]} <example_name>")
        return

    example_name = sys.argv[1]
    example_func = examples.get(example_name)

    if not example_func:
        print(f"\nError: Example '{example_name}' not found.")
        print("Available examples are:")
        for key in examples:
            print(f"  - {key}")
        return

    scene = Scene()
    example_func(scene).toplevel(example_name)
    print(f"Scene: {example_name.replace('_', ' ').title()} Example")
    print(scene.dump())

    # Sample the distance field along the X axis.
    top = scene.toplevels[0]
    xs = np.linspace(-2, 2, 9)
    points = np.stack([xs, np.zeros_like(xs), np.zeros_like(xs)], axis=1)
    for x, d in zip(xs, top.distance(points)):
        print(f"  d({x:+.2f}, 0, 0) = {d:+.4f}")


if __name__ == "__main__":
    main()
