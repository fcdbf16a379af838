"""Small 4x4 homogeneous matrix helpers on top of numpy."""

import numpy as np


class SingularTransformError(ValueError):
    """Raised when a placement matrix cannot be inverted."""


def translation(offset):
    m = np.eye(4, dtype=np.float64)
    m[:3, 3] = np.asarray(offset, dtype=np.float64).reshape(3)
    return m


def scaling(factors):
    m = np.eye(4, dtype=np.float64)
    m[[0, 1, 2], [0, 1, 2]] = np.asarray(factors, dtype=np.float64).reshape(3)
    return m


def as_matrix4(matrix):
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape == (3, 4):
        m = np.vstack([m, [0.0, 0.0, 0.0, 1.0]])
    if m.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 (or 3x4) matrix, got shape {m.shape}")
    return m


def apply_matrix(matrix, points):
    """Transform a point or an (N, 3) array of points by a 4x4 matrix.

    Applies the perspective divide, so projective matrices behave the way a
    renderer would treat them.
    """
    pts = np.asarray(points, dtype=np.float64)
    single = pts.ndim == 1
    pts = pts.reshape(-1, 3)
    homogeneous = np.column_stack([pts, np.ones(len(pts))]) @ matrix.T
    result = homogeneous[:, :3] / homogeneous[:, 3:4]
    return result[0] if single else result


def invert(matrix):
    m = as_matrix4(matrix)
    if not np.all(np.isfinite(m)):
        raise SingularTransformError("Matrix contains non-finite entries")
    # Determinant relative to column lengths, so near-degenerate placements count as singular
    scale = np.prod(np.linalg.norm(m, axis=0))
    det = np.linalg.det(m)
    if scale == 0 or abs(det) <= 1e-12 * scale:
        raise SingularTransformError(f"Matrix is singular (det={det:g})")
    try:
        return np.linalg.inv(m)
    except np.linalg.LinAlgError as exc:
        raise SingularTransformError(str(exc)) from exc


__all__ = [
    "SingularTransformError",
    "translation",
    "scaling",
    "as_matrix4",
    "apply_matrix",
    "invert",
]
