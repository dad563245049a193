from .core import NodeRef, ContractViolation, X, Y, Z
from .core import Sphere, Box, Union, Intersection, Difference, Transform, Toplevel
from .scene import Scene
from .operations import unite, intersect, subtract
from .transforms import (
    transform, scale, xscale, yscale, zscale,
    rotate, xrotate, yrotate, zrotate,
    translate, xtranslate, ytranslate, ztranslate,
    identity_matrix, translation_matrix, scaling_matrix, rotation_matrix,
)
from .io import dump, parse, ParseResult
