import numpy as np

from config.settings import TABLE_SIZE
from data_pipeline.volume import VolumeGrid
from renderers.volume import PyVistaVolumeRenderer
from renderers.volumetric import build_volumetric_render


def _descriptor(grid, ramp_points, **options):
    return build_volumetric_render(grid, dict(transferfn=ramp_points, **options))


def test_render_adds_one_volume(plotter, unit_lattice, ramp_points):
    renderer = PyVistaVolumeRenderer(plotter, _descriptor(unit_lattice, ramp_points))
    actor = renderer.render()

    assert actor is renderer.actor
    assert len(plotter.volumes) == 1
    image, kwargs, _ = plotter.volumes[0]
    assert image.dimensions == (3, 3, 3)
    np.testing.assert_allclose(image.origin, (-1, -1, -1))
    np.testing.assert_allclose(
        np.asarray(image.point_data['values']),
        unit_lattice.values.ravel(order='F'),
    )
    assert kwargs['scalars'] == 'values'
    assert kwargs['n_colors'] == TABLE_SIZE + 1
    assert len(kwargs['opacity']) == TABLE_SIZE + 1
    assert kwargs['opacity'][0] == 0.0
    assert kwargs['opacity'][-1] == 1.0
    assert kwargs['clim'][1] == 1.0
    assert kwargs['clim'][0] < 0.0


def test_sentinel_voxels_map_below_range(plotter, unit_lattice, ramp_points):
    desc = _descriptor(unit_lattice, ramp_points, coords=[(0, 0, 0)], seldist=1.5)
    PyVistaVolumeRenderer(plotter, desc).render()
    image, kwargs, _ = plotter.volumes[0]
    values = np.asarray(image.point_data['values'])
    assert np.all(np.isfinite(values))
    assert np.count_nonzero(values == kwargs['clim'][0]) == 8


def test_values_below_range_keep_first_entry(plotter, ramp_points):
    grid = VolumeGrid(np.array([-5.0, -0.001, 0.25, 0.5, 1.0, 2.0, np.inf, 0.0]), (2, 2, 2))
    PyVistaVolumeRenderer(plotter, _descriptor(grid, ramp_points)).render()
    image, kwargs, _ = plotter.volumes[0]
    values = np.sort(np.asarray(image.point_data['values']))
    # Only the sentinel voxel lands in the transparent slot
    assert values[0] == kwargs['clim'][0]
    np.testing.assert_array_equal(values[1:4], [0.0, 0.0, 0.0])
    assert values[4] == 0.25


def test_colormap_has_transparent_bottom_entry(plotter, unit_lattice, ramp_points):
    PyVistaVolumeRenderer(plotter, _descriptor(unit_lattice, ramp_points)).render()
    _, kwargs, _ = plotter.volumes[0]
    cmap = kwargs['cmap']
    assert cmap.N == TABLE_SIZE + 1
    assert cmap(0) == (0.0, 0.0, 0.0, 0.0)
    assert cmap(TABLE_SIZE) == (1.0, 1.0, 1.0, 1.0)


def test_rerender_replaces_actor(plotter, unit_lattice, ramp_points):
    renderer = PyVistaVolumeRenderer(plotter, _descriptor(unit_lattice, ramp_points))
    first = renderer.render()
    second = renderer.render()
    assert plotter.removed == [first]
    assert renderer.actor is second


def test_hidden_descriptor_adds_nothing(plotter, unit_lattice, ramp_points):
    renderer = PyVistaVolumeRenderer(plotter, _descriptor(unit_lattice, ramp_points, hidden=True))
    assert renderer.render() is None
    assert plotter.volumes == []


def test_affine_grid_uses_user_matrix(plotter, ramp_points, sheared_matrix):
    grid = VolumeGrid(np.arange(24), (2, 3, 4), matrix=sheared_matrix)
    renderer = PyVistaVolumeRenderer(plotter, _descriptor(grid, ramp_points))
    actor = renderer.render()
    np.testing.assert_allclose(actor.user_matrix, sheared_matrix, atol=1e-12)


def test_clear_and_visibility(plotter, unit_lattice, ramp_points):
    renderer = PyVistaVolumeRenderer(plotter, _descriptor(unit_lattice, ramp_points))
    actor = renderer.render()
    renderer.set_visible(False)
    assert actor.visible is False
    renderer.clear()
    assert renderer.actor is None
    assert plotter.removed == [actor]


def test_add_volume_failure_is_reported(unit_lattice, ramp_points, capsys):
    class BrokenPlotter:
        def add_volume(self, image, **kwargs):
            raise RuntimeError("no OpenGL context")

    plotter = BrokenPlotter()
    renderer = PyVistaVolumeRenderer(plotter, _descriptor(unit_lattice, ramp_points))
    assert renderer.render() is None
    assert "no OpenGL context" in capsys.readouterr().out
