import numpy as np
import pyvista as pv

from renderers.base import RendererBase


class PyVistaVolumeRenderer(RendererBase):
    """Hands a ``VolumetricRenderDescriptor`` to a PyVista plotter.

    Sentinel voxels (excluded by selective rendering) are drawn through an
    extra fully transparent colormap entry just below the transfer range.
    """

    __slots__ = ('blending', '_volume_name', '_image')

    def __init__(self, plotter, descriptor, blending='composite'):
        super().__init__(plotter, descriptor)
        self.blending = blending
        self._volume_name = f"volume_{id(self)}"
        self._image = None

    def _sentinel_step(self):
        span = self.descriptor.value_max - self.descriptor.value_min
        return span / len(self.descriptor.transfer) if span > 0 else 1.0

    def build_image(self):
        """ImageData carrying the descriptor's grid values, sentinel voxels remapped below range."""
        grid = self.descriptor.grid
        if grid.is_affine:
            # Placed later through the actor's user matrix
            image = pv.ImageData(dimensions=grid.size)
        else:
            image = pv.ImageData(
                dimensions=grid.size,
                spacing=tuple(grid.unit.tolist()),
                origin=tuple(grid.origin.tolist()),
            )
        values = np.array(grid.values, dtype=np.float32)
        finite = np.isfinite(values)
        # Real values below range keep the first table entry; only sentinels go transparent
        values[finite] = np.maximum(values[finite], self.descriptor.value_min)
        values[~finite] = self.descriptor.value_min - self._sentinel_step()
        # VTK expects Fortran order
        image.point_data['values'] = values.ravel(order='F')
        return image

    def transfer_arrays(self):
        """Colormap, per-entry opacity and scalar range for ``add_volume``."""
        table = self.descriptor.transfer
        cmap = table.to_colormap(name=f"transfer_{id(self)}", transparent_below=True)
        opacity = np.concatenate([[0.0], table.rgba[:, 3] / 255.0])
        clim = [self.descriptor.value_min - self._sentinel_step(), self.descriptor.value_max]
        return cmap, opacity, clim

    def render(self):
        # Replace rather than stack actors
        self.clear()
        if self.descriptor.hidden:
            return None
        plotter = self.plotter
        if plotter is None:
            return None

        self._image = self.build_image()
        cmap, opacity, clim = self.transfer_arrays()
        try:
            self.actor = plotter.add_volume(
                self._image,
                scalars='values',
                cmap=cmap,
                opacity=opacity,
                clim=clim,
                n_colors=len(opacity),
                blending=self.blending,
                show_scalar_bar=False,
                name=self._volume_name,
            )
        except Exception as e:
            print(f"[VolumeRenderer] Error adding volume: {e}")
            self._image = None
            return None

        if self.descriptor.grid.is_affine:
            self.actor.user_matrix = self.descriptor.grid_to_world()
        print(f"[VolumeRenderer] Volume added: {self.descriptor.grid.size}, blending={self.blending}")
        return self.actor

    def clear(self, render: bool = False):
        """Remove the volume from the plotter and release the image."""
        super().clear(render=render)
        self._image = None


__all__ = ["PyVistaVolumeRenderer"]
