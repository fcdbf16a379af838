"""World-space placement of a volume grid.

Produces the matrix mapping world coordinates into the normalized [0, 1]^3
texture space the ray marcher samples, together with the axis-aligned
world extent, its diagonal length and the finest grid spacing.
"""

from dataclasses import dataclass
from itertools import product

import numpy as np

from geometry.matrix import apply_matrix, invert, scaling, translation


def _frozen(arr):
    arr = np.array(arr, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Extent:
    """Axis-aligned world-space box."""

    min: np.ndarray
    max: np.ndarray

    def __post_init__(self):
        lo, hi = _frozen(self.min).reshape(3), _frozen(self.max).reshape(3)
        if np.any(lo > hi):
            raise ValueError(f"Extent min {lo.tolist()} exceeds max {hi.tolist()}")
        object.__setattr__(self, 'min', lo)
        object.__setattr__(self, 'max', hi)

    @property
    def dimensions(self):
        return self.max - self.min

    @property
    def center(self):
        return (self.min + self.max) / 2.0

    def corners(self):
        """The 8 corners, bit 0/1/2 of the row index selecting max on x/y/z."""
        return np.array([[self.max[a] if (i >> a) & 1 else self.min[a] for a in range(3)]
                         for i in range(8)])

    def as_list(self):
        return [self.min.tolist(), self.max.tolist()]


@dataclass(frozen=True, eq=False)
class GridTransformResult:
    texture_matrix: np.ndarray
    extent: Extent
    max_depth: float
    min_unit: float

    def __post_init__(self):
        object.__setattr__(self, 'texture_matrix', _frozen(self.texture_matrix))

    def to_texture(self, points):
        return apply_matrix(self.texture_matrix, points)


def _affine_transform(grid):
    matrix = grid.matrix
    size = np.asarray(grid.size, dtype=np.float64)

    corners = np.array([[size[a] if c[a] else 0.0 for a in range(3)]
                        for c in product((0, 1), repeat=3)])
    world = apply_matrix(matrix, corners)
    extent = Extent(world.min(axis=0), world.max(axis=0))
    max_depth = float(np.linalg.norm(extent.max - extent.min))

    # Smallest component of the transformed unit step
    min_unit = float((matrix[:3, :3] @ np.ones(3)).min())
    if not min_unit > 0:
        # Rotations and reflections can zero or flip a component; use the shortest axis step
        min_unit = float(np.linalg.norm(matrix[:3, :3], axis=0).min())

    texture_matrix = invert(matrix @ scaling(size))
    return GridTransformResult(texture_matrix, extent, max_depth, min_unit)


def _axis_aligned_transform(grid):
    span = grid.unit * np.asarray(grid.size, dtype=np.float64)
    extent = Extent(grid.origin, grid.origin + span)
    max_depth = float(np.linalg.norm(span))
    min_unit = float(grid.unit.min())
    # Scale is applied first, so the translation is pre-divided by the span
    texture_matrix = translation(-grid.origin / span) @ scaling(1.0 / span)
    return GridTransformResult(texture_matrix, extent, max_depth, min_unit)


def compute_grid_transform(grid) -> GridTransformResult:
    """Placement data for ``grid``; raises ``SingularTransformError`` for degenerate matrices."""
    if grid.matrix is not None:
        result = _affine_transform(grid)
    else:
        result = _axis_aligned_transform(grid)
    if not result.min_unit > 0:
        raise ValueError(f"Grid has non-positive minimum spacing {result.min_unit}")
    return result


__all__ = ["Extent", "GridTransformResult", "compute_grid_transform"]
