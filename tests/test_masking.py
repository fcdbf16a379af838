import numpy as np
import pytest

from data_pipeline.masking import apply_selection, selection_mask
from data_pipeline.volume import VolumeGrid


def _centre_distances(grid, point):
    ijk = np.stack(np.meshgrid(*(np.arange(s) for s in grid.size), indexing='ij'), axis=-1).reshape(-1, 3)
    centres = grid.lattice_to_world(ijk)
    return np.linalg.norm(centres - point, axis=1)[np.argsort(grid.flat_index(ijk))]


def test_keeps_voxels_strictly_within_distance(unit_lattice):
    original = unit_lattice.data.copy()
    data = apply_selection(unit_lattice, [(0, 0, 0)], 1.5, 1.0)

    kept = _centre_distances(unit_lattice, np.zeros(3)) < 1.5
    assert kept.sum() == 19
    np.testing.assert_array_equal(data[kept], original[kept])
    assert np.all(np.isposinf(data[~kept]))
    # The source grid is untouched
    np.testing.assert_array_equal(unit_lattice.data, original)


def test_in_place_overwrites_grid(unit_lattice):
    data = apply_selection(unit_lattice, [(0, 0, 0)], 1.5, 1.0, in_place=True)
    assert np.shares_memory(data, unit_lattice.data)
    assert np.isposinf(unit_lattice.data[0])
    assert unit_lattice.data[13] == 14.0


def test_distant_reference_excludes_everything(unit_lattice):
    mask = selection_mask(unit_lattice, [(10, 10, 10)], 1.5, 1.0)
    assert not mask.any()


def test_box_with_both_extreme_corners_outside_is_skipped(unit_lattice):
    # The voxel at (1, -1, 0) is at distance 0, but the query box's min and
    # max corners both fall outside the grid.
    mask = selection_mask(unit_lattice, [(1.0, -1.0, 0.0)], 1.6, 1.0)
    assert not mask.any()


def test_union_of_reference_points():
    grid = VolumeGrid(np.ones(125), (5, 5, 5))
    mask = selection_mask(grid, [(0, 0, 0), (4, 4, 4)], 1.01, 1.0)
    assert mask.sum() == 8
    assert mask[grid.get_index(0, 0, 0)]
    assert mask[grid.get_index(1, 0, 0)]
    assert mask[grid.get_index(4, 4, 3)]
    assert not mask[grid.get_index(1, 1, 0)]


def test_rotated_grid_matches_brute_force():
    matrix = np.array([
        [0.0, -1.0, 0.0, 0.0],
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])
    grid = VolumeGrid(np.zeros(64), (4, 4, 4), matrix=matrix)
    centre = np.array([-1.5, 1.5, 1.5])
    mask = selection_mask(grid, [centre], 1.2, 1.0)
    expected = _centre_distances(grid, centre) < 1.2
    assert expected.any()
    np.testing.assert_array_equal(mask, expected)


def test_empty_reference_list_excludes_everything(unit_lattice):
    data = apply_selection(unit_lattice, [], 1.5, 1.0)
    assert np.all(np.isposinf(data))


def test_candidate_budget_is_enforced(unit_lattice):
    with pytest.raises(ValueError):
        selection_mask(unit_lattice, [(0, 0, 0)], 1.5, 1.0, max_candidates=10)


def test_budget_applies_only_to_examined_points(unit_lattice):
    assert not selection_mask(unit_lattice, [], 50.0, 1.0, max_candidates=1).any()
    # Both corners of the query box miss the grid, so the point is never examined
    far = [(100.0, 100.0, 100.0)]
    assert not selection_mask(unit_lattice, far, 50.0, 1.0, max_candidates=1).any()
    data = apply_selection(unit_lattice, far, 50.0, 1.0, max_candidates=1)
    assert np.all(np.isposinf(data))


def test_budget_from_settings(unit_lattice, monkeypatch):
    from config import settings
    monkeypatch.setattr(settings, 'MAX_MASK_CANDIDATES', 10)
    with pytest.raises(ValueError):
        selection_mask(unit_lattice, [(0, 0, 0)], 1.5, 1.0)


@pytest.mark.parametrize("distance, min_unit", [(0.0, 1.0), (-1.0, 1.0), (1.0, 0.0)])
def test_rejects_bad_parameters(unit_lattice, distance, min_unit):
    with pytest.raises(ValueError):
        selection_mask(unit_lattice, [(0, 0, 0)], distance, min_unit)
