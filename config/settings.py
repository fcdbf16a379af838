import os

import numpy as np

TABLE_SIZE = 256
DEFAULT_SUBSAMPLES = 5.0

# Value written into voxels excluded by selective rendering
SENTINEL = np.float32(np.inf)

_DEFAULT_MAX_MASK_CANDIDATES = 1 << 24


def _env_int(name, default):
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"[Config] Ignoring {name}={value!r}, expected an integer")
        return default


# Upper bound on lattice points examined around a single reference point
MAX_MASK_CANDIDATES = _env_int('VOLREND_MAX_MASK_CANDIDATES', _DEFAULT_MAX_MASK_CANDIDATES)


__all__ = [
    "TABLE_SIZE",
    "DEFAULT_SUBSAMPLES",
    "SENTINEL",
    "MAX_MASK_CANDIDATES",
]
