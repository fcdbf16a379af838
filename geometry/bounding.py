from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class BoundingSphere:
    center: np.ndarray
    radius: float


def bounding_sphere(transform) -> BoundingSphere:
    """Sphere around a grid's extent, used for culling and position queries."""
    center = (transform.extent.min + transform.extent.max) / 2.0
    center.setflags(write=False)
    return BoundingSphere(center, transform.max_depth / 2)


__all__ = ["BoundingSphere", "bounding_sphere"]
