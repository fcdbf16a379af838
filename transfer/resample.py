import numpy as np


def resample(source, target_length):
    """Linearly stretch ``source`` to ``target_length`` samples.

    The first and last outputs are the source endpoints; interior sample ``i``
    reads the source at ``t = i * (N - 1) / (M - 1)``. Requires at least two
    source values and ``target_length >= 2``.
    """
    data = np.asarray(source, dtype=np.float64).ravel()
    n = data.shape[0]
    m = int(target_length)
    if n < 2:
        raise ValueError(f"resample needs at least 2 source values, got {n}")
    if m < 2:
        raise ValueError(f"resample target length must be >= 2, got {target_length}")

    result = np.empty(m, dtype=np.float64)
    result[0] = data[0]
    result[-1] = data[-1]
    if m > 2:
        t = np.arange(1, m - 1, dtype=np.float64) * ((n - 1) / (m - 1))
        lo = np.floor(t).astype(np.intp)
        hi = np.ceil(t).astype(np.intp)
        frac = t - lo
        result[1:-1] = data[lo] + (data[hi] - data[lo]) * frac
    return result


__all__ = ["resample"]
