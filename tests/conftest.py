import numpy as np
import pytest

from data_pipeline.volume import VolumeGrid


@pytest.fixture
def unit_lattice():
    """3x3x3 grid of voxel centres at -1, 0, 1 on each axis, values 1..27."""
    values = np.arange(1, 28, dtype=np.float32).reshape(3, 3, 3)
    return VolumeGrid.from_array(values, origin=(-1, -1, -1), unit=(1, 1, 1))


@pytest.fixture
def ramp_points():
    return [
        {'value': 0.0, 'color': (0, 0, 0), 'opacity': 0.0},
        {'value': 1.0, 'color': (1, 1, 1), 'opacity': 1.0},
    ]


def rotation_z(degrees):
    theta = np.radians(degrees)
    c, s = np.cos(theta), np.sin(theta)
    return np.array([
        [c, -s, 0.0, 0.0],
        [s, c, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
        [0.0, 0.0, 0.0, 1.0],
    ])


@pytest.fixture
def sheared_matrix():
    """Rotation about z, anisotropic scale, shear and a translation."""
    scale = np.diag([0.5, 1.0, 2.0, 1.0])
    shear = np.eye(4)
    shear[0, 1] = 0.3
    m = rotation_z(30) @ shear @ scale
    m[:3, 3] = (1.0, -2.0, 3.0)
    return m


class FakeActor:
    def __init__(self):
        self.visible = True
        self.user_matrix = None

    def SetVisibility(self, visible):
        self.visible = visible


class FakePlotter:
    """Records add_volume/remove_actor calls instead of drawing."""

    def __init__(self):
        self.volumes = []
        self.removed = []

    def add_volume(self, image, **kwargs):
        actor = FakeActor()
        self.volumes.append((image, kwargs, actor))
        return actor

    def remove_actor(self, actor, render=False):
        self.removed.append(actor)


@pytest.fixture
def plotter():
    return FakePlotter()
