"""Selective rendering: keep only voxels close to a set of reference points."""

import math

import numpy as np

from config import settings
from geometry.grid_transform import Extent


def _check_budget(distance, min_unit, limit):
    steps = math.ceil(2.0 * distance / min_unit) + 1
    estimate = steps ** 3
    if estimate > limit:
        raise ValueError(
            f"Selection distance {distance} at spacing {min_unit} examines ~{estimate:,} "
            f"voxels per reference point (limit {limit:,}); "
            f"raise VOLREND_MAX_MASK_CANDIDATES or reduce seldist"
        )


def _lattice_window(grid, lo, hi):
    """Inclusive lattice index range covering the world box [lo, hi], clipped to the grid."""
    lattice = grid.world_to_lattice(Extent(lo, hi).corners())
    start = np.maximum(np.floor(lattice.min(axis=0)), 0).astype(np.intp)
    stop = np.minimum(np.ceil(lattice.max(axis=0)), np.asarray(grid.size) - 1).astype(np.intp)
    return start, stop


def selection_mask(grid, coords, distance, min_unit, max_candidates=None):
    """Boolean mask over ``grid`` voxels within ``distance`` of any of ``coords``.

    A reference point is considered only if the min or max corner of its query
    box ``[c - distance, c + distance]`` resolves to a grid voxel. Boxes that
    overlap the grid with both of those corners outside are skipped.
    """
    distance = float(distance)
    if not distance > 0:
        raise ValueError(f"Selection distance must be positive, got {distance}")
    if not min_unit > 0:
        raise ValueError(f"Grid spacing must be positive, got {min_unit}")
    coords = np.asarray(coords, dtype=np.float64).reshape(-1, 3)
    limit = settings.MAX_MASK_CANDIDATES if max_candidates is None else int(max_candidates)

    mask = np.zeros(grid.voxel_count, dtype=bool)
    d2 = distance * distance
    for c in coords:
        lo = c - distance
        hi = c + distance
        if grid.get_index(*lo) < 0 and grid.get_index(*hi) < 0:
            continue
        _check_budget(distance, min_unit, limit)
        start, stop = _lattice_window(grid, lo, hi)
        if np.any(stop < start):
            continue
        axes = [np.arange(a, b + 1) for a, b in zip(start, stop)]
        ijk = np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1).reshape(-1, 3)
        if ijk.shape[0] > limit:
            raise ValueError(f"Selection window of {ijk.shape[0]:,} voxels exceeds limit {limit:,}")
        offsets = grid.lattice_to_world(ijk) - c
        close = np.einsum('ij,ij->i', offsets, offsets) < d2
        mask[grid.flat_index(ijk[close])] = True
    return mask


def apply_selection(grid, coords, distance, min_unit, in_place=False, max_candidates=None):
    """Return grid data with every unselected voxel set to the sentinel.

    By default a new buffer is returned and ``grid`` is left untouched. With
    ``in_place=True`` the grid's own buffer is overwritten; that is
    irreversible, so do it at most once per grid.
    """
    mask = selection_mask(grid, coords, distance, min_unit, max_candidates=max_candidates)
    data = grid.data if in_place else grid.data.copy()
    data[~mask] = settings.SENTINEL
    kept = int(mask.sum())
    print(f"[SpatialMask] Kept {kept:,} of {mask.shape[0]:,} voxels "
          f"within {distance} of {len(np.asarray(coords).reshape(-1, 3))} point(s)")
    return data


__all__ = ["selection_mask", "apply_selection"]
