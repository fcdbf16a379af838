"""Render descriptor for volumetric density rendering.

Everything the volumetric material needs is computed once from a grid and a
``VolumetricRenderSpec`` and frozen into a ``VolumetricRenderDescriptor``.
A style change means building a new descriptor.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from config.spec import VolumetricRenderSpec
from data_pipeline.masking import apply_selection
from data_pipeline.volume import VolumeGrid
from geometry.bounding import BoundingSphere, bounding_sphere
from geometry.grid_transform import GridTransformResult, compute_grid_transform
from geometry.matrix import invert, scaling
from transfer.transfer_function import TransferFunctionTable, build_transfer_table


@dataclass(frozen=True, eq=False)
class VolumetricRenderDescriptor:
    grid: VolumeGrid
    transfer: TransferFunctionTable
    transform: GridTransformResult
    bounding_sphere: BoundingSphere
    subsamples: float
    hidden: bool = False

    @property
    def value_min(self):
        return self.transfer.value_min

    @property
    def value_max(self):
        return self.transfer.value_max

    @property
    def texture_matrix(self):
        return self.transform.texture_matrix

    @property
    def extent(self):
        return self.transform.extent

    @property
    def max_depth(self):
        return self.transform.max_depth

    @property
    def min_unit(self):
        return self.transform.min_unit

    def get_position(self):
        return self.bounding_sphere.center

    def get_x(self):
        return float(self.bounding_sphere.center[0])

    def get_y(self):
        return float(self.bounding_sphere.center[1])

    def get_z(self):
        return float(self.bounding_sphere.center[2])

    def grid_to_world(self):
        """Matrix taking lattice coordinates to world coordinates."""
        size = np.asarray(self.grid.size, dtype=np.float64)
        return invert(self.transform.texture_matrix) @ scaling(1.0 / size)

    def material_uniforms(self):
        """Values consumed by a volumetric ray-marching material."""
        return {
            'transferfn': self.transfer.tobytes(),
            'transfermin': self.value_min,
            'transfermax': self.value_max,
            'extent': self.extent.as_list(),
            'maxdepth': self.max_depth,
            'texmatrix': self.texture_matrix,
            'unit': self.min_unit,
            'subsamples': self.subsamples,
        }


def build_volumetric_render(grid: VolumeGrid, spec=None, in_place=False) -> VolumetricRenderDescriptor:
    """Compute the render descriptor for ``grid`` styled by ``spec``.

    ``spec`` may be a ``VolumetricRenderSpec`` or its dict form. When it asks
    for selective rendering the descriptor carries a copy of the grid with
    unselected voxels set to the sentinel; ``in_place=True`` overwrites the
    caller's grid data instead.
    """
    if not isinstance(spec, VolumetricRenderSpec):
        spec = VolumetricRenderSpec.from_dict(spec)

    transform = compute_grid_transform(grid)
    table = build_transfer_table(spec.transferfn)
    sphere = bounding_sphere(transform)

    render_grid = grid
    if spec.selective:
        data = apply_selection(grid, spec.coords, spec.seldist, transform.min_unit, in_place=in_place)
        if not in_place:
            render_grid = grid.with_data(data)

    return VolumetricRenderDescriptor(
        grid=render_grid,
        transfer=table,
        transform=transform,
        bounding_sphere=sphere,
        subsamples=spec.subsamples,
        hidden=spec.hidden,
    )


__all__ = ["VolumetricRenderDescriptor", "build_volumetric_render"]
