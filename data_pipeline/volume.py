"""Scalar volume on a regular 3D lattice.

A grid is placed in world space either by an ``origin`` and per-axis ``unit``
spacing, or by an arbitrary 4x4 ``matrix`` mapping lattice coordinates to
world coordinates. ``data`` is a flat float32 buffer in C order over ``size``
(x slowest, z fastest).
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from geometry.matrix import apply_matrix, as_matrix4, invert


class VolumeGrid:
    __slots__ = ('size', 'origin', 'unit', 'matrix', 'data', '_inverse')

    def __init__(self, data, size: Sequence[int], origin=None, unit=None, matrix=None):
        size = tuple(int(s) for s in size)
        if len(size) != 3 or any(s <= 0 for s in size):
            raise ValueError(f"Grid size must be three positive integers, got {size}")

        data = np.asarray(data, dtype=np.float32).reshape(-1)
        expected = size[0] * size[1] * size[2]
        if data.shape[0] != expected:
            raise ValueError(f"Grid data has {data.shape[0]} values, size {size} needs {expected}")

        if matrix is not None:
            if origin is not None or unit is not None:
                raise ValueError("Give either a placement matrix or origin/unit, not both")
            self.matrix = as_matrix4(matrix)
            self.origin = None
            self.unit = None
        else:
            self.matrix = None
            self.origin = np.zeros(3) if origin is None else np.asarray(origin, dtype=np.float64).reshape(3)
            self.unit = np.ones(3) if unit is None else np.asarray(unit, dtype=np.float64).reshape(3)
            if not np.all(self.unit > 0):
                raise ValueError(f"Grid unit spacing must be positive, got {self.unit.tolist()}")

        self.size = size
        self.data = data
        self._inverse = None

    @classmethod
    def from_array(cls, values, origin=None, unit=None, matrix=None) -> "VolumeGrid":
        """Wrap a 3D array indexed ``[x, y, z]``."""
        values = np.asarray(values, dtype=np.float32)
        if values.ndim != 3:
            raise ValueError(f"Expected a 3D array, got shape {values.shape}")
        return cls(np.ascontiguousarray(values).ravel(), values.shape,
                   origin=origin, unit=unit, matrix=matrix)

    @classmethod
    def from_pyvista(cls, image, scalars: Optional[str] = None) -> "VolumeGrid":
        """Build a grid from a ``pyvista.ImageData`` and one of its point arrays."""
        name = scalars or image.active_scalars_name
        if name is None:
            if not image.point_data.keys():
                raise ValueError("ImageData has no point data to use as density")
            name = image.point_data.keys()[0]
        dims = tuple(int(d) for d in image.dimensions)
        # VTK stores point data with x varying fastest
        values = np.asarray(image.point_data[name], dtype=np.float32).reshape(dims, order='F')
        spacing = np.asarray(image.spacing, dtype=np.float64)
        origin = np.asarray(image.origin, dtype=np.float64)
        direction = np.asarray(getattr(image, 'direction_matrix', np.eye(3)), dtype=np.float64)
        if np.allclose(direction, np.eye(3)):
            return cls.from_array(values, origin=origin, unit=spacing)
        matrix = np.eye(4)
        matrix[:3, :3] = direction @ np.diag(spacing)
        matrix[:3, 3] = origin
        return cls.from_array(values, matrix=matrix)

    @property
    def is_affine(self) -> bool:
        return self.matrix is not None

    @property
    def voxel_count(self) -> int:
        return self.data.shape[0]

    @property
    def values(self):
        """3D view of ``data`` indexed ``[x, y, z]``."""
        return self.data.reshape(self.size)

    def with_data(self, data) -> "VolumeGrid":
        """Same placement, different scalar buffer."""
        if self.matrix is not None:
            return VolumeGrid(data, self.size, matrix=self.matrix)
        return VolumeGrid(data, self.size, origin=self.origin, unit=self.unit)

    def _inverse_matrix(self):
        if self._inverse is None:
            self._inverse = invert(self.matrix)
        return self._inverse

    def world_to_lattice(self, points):
        """Continuous lattice coordinates of world points, shape (N, 3)."""
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if self.matrix is not None:
            return apply_matrix(self._inverse_matrix(), pts)
        return (pts - self.origin) / self.unit

    def lattice_to_world(self, ijk):
        ijk = np.asarray(ijk, dtype=np.float64).reshape(-1, 3)
        if self.matrix is not None:
            return apply_matrix(self.matrix, ijk)
        return self.origin + ijk * self.unit

    def flat_index(self, ijk):
        ijk = np.asarray(ijk, dtype=np.intp).reshape(-1, 3)
        _, sy, sz = self.size
        return (ijk[:, 0] * sy + ijk[:, 1]) * sz + ijk[:, 2]

    def get_indices(self, points):
        """Flat data indices of the voxels nearest to each point, -1 when outside."""
        lattice = np.floor(self.world_to_lattice(points) + 0.5).astype(np.intp)
        inside = np.all((lattice >= 0) & (lattice < np.asarray(self.size)), axis=1)
        indices = np.full(lattice.shape[0], -1, dtype=np.intp)
        indices[inside] = self.flat_index(lattice[inside])
        return indices

    def get_index(self, x, y, z) -> int:
        return int(self.get_indices((x, y, z))[0])

    def __repr__(self):
        if self.matrix is not None:
            return f"VolumeGrid(size={self.size}, affine)"
        return f"VolumeGrid(size={self.size}, origin={self.origin.tolist()}, unit={self.unit.tolist()})"


__all__ = ["VolumeGrid"]
