"""User-facing description of a volumetric render."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from config.settings import DEFAULT_SUBSAMPLES
from transfer.transfer_function import TransferControlPoint


def _coerce_coords(coords):
    if coords is None:
        return None
    rows = []
    for c in coords:
        if isinstance(c, dict):
            try:
                rows.append((float(c['x']), float(c['y']), float(c['z'])))
            except KeyError as exc:
                raise ValueError(f"Coordinate {c!r} is missing key {exc}") from None
        else:
            c = tuple(c)
            if len(c) != 3:
                raise ValueError(f"Coordinate {c!r} must have exactly 3 components")
            rows.append(tuple(float(v) for v in c))
    arr = np.asarray(rows, dtype=np.float64).reshape(-1, 3)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class VolumetricRenderSpec:
    """Style specification for a volumetric render.

    ``coords`` and ``seldist`` enable selective rendering together; giving
    only one of them leaves the whole grid visible.
    """

    transferfn: List[TransferControlPoint] = field(default_factory=list)
    subsamples: float = DEFAULT_SUBSAMPLES
    coords: Optional[np.ndarray] = None
    seldist: Optional[float] = None
    hidden: bool = False

    def __post_init__(self):
        points = [TransferControlPoint.from_any(p) for p in self.transferfn]
        object.__setattr__(self, 'transferfn', points)
        object.__setattr__(self, 'coords', _coerce_coords(self.coords))
        if self.seldist is not None:
            seldist = float(self.seldist)
            if not seldist > 0:
                raise ValueError(f"seldist must be positive, got {self.seldist!r}")
            object.__setattr__(self, 'seldist', seldist)
        subsamples = float(self.subsamples) if self.subsamples else DEFAULT_SUBSAMPLES
        object.__setattr__(self, 'subsamples', subsamples)

    @property
    def selective(self) -> bool:
        return self.coords is not None and self.seldist is not None

    @classmethod
    def from_dict(cls, spec: Optional[dict]) -> "VolumetricRenderSpec":
        spec = dict(spec or {})
        known = {'transferfn', 'subsamples', 'coords', 'seldist', 'hidden'}
        unknown = set(spec) - known
        if unknown:
            raise ValueError(f"Unknown volumetric render options: {sorted(unknown)}")
        return cls(**spec)


__all__ = ["VolumetricRenderSpec"]
