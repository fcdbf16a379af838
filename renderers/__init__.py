from renderers.base import RendererBase
from renderers.volumetric import VolumetricRenderDescriptor, build_volumetric_render
from renderers.volume import PyVistaVolumeRenderer

__all__ = [
    "RendererBase",
    "VolumetricRenderDescriptor",
    "build_volumetric_render",
    "PyVistaVolumeRenderer",
]
