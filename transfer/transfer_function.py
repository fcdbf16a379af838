import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from matplotlib.colors import ListedColormap

from config.settings import TABLE_SIZE
from transfer.colors import to_rgb
from transfer.resample import resample


@dataclass(frozen=True)
class TransferControlPoint:
    """A single ``{value, color, opacity}`` stop of a transfer function."""

    value: float
    color: Tuple[float, float, float]
    opacity: float = 1.0

    def __post_init__(self):
        # Values may arrive as strings from serialized specs
        try:
            value = float(self.value)
            opacity = float(self.opacity)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid control point value/opacity: {self.value!r}, {self.opacity!r}") from None
        if not math.isfinite(value):
            raise ValueError(f"Control point value must be finite, got {self.value!r}")
        object.__setattr__(self, 'value', value)
        object.__setattr__(self, 'opacity', opacity)
        object.__setattr__(self, 'color', to_rgb(self.color))

    @classmethod
    def from_any(cls, point):
        if isinstance(point, cls):
            return point
        if isinstance(point, dict):
            if 'value' not in point or 'color' not in point:
                raise ValueError(f"Control point {point!r} needs 'value' and 'color'")
            return cls(point['value'], point['color'], point.get('opacity', 1.0))
        try:
            return cls(*point)
        except TypeError:
            raise ValueError(f"Cannot interpret {point!r} as a control point") from None

    def rgba255(self):
        r, g, b = self.color
        return np.array([r * 255.0, g * 255.0, b * 255.0, self.opacity * 255.0], dtype=np.float64)


EMPTY_STOP = TransferControlPoint(0.0, (0.0, 0.0, 0.0), 0.0)


class TransferFunctionTable:
    """Byte-quantized RGBA lookup table plus the value range it spans.

    Immutable once built; ``rgba`` is a read-only ``(TABLE_SIZE, 4)`` array.
    """

    __slots__ = ('_rgba', '_value_min', '_value_max')

    def __init__(self, rgba, value_min, value_max):
        rgba = np.array(rgba, dtype=np.uint8).reshape(-1, 4)
        rgba.setflags(write=False)
        self._rgba = rgba
        self._value_min = float(value_min)
        self._value_max = float(value_max)

    @property
    def rgba(self):
        return self._rgba

    @property
    def value_min(self):
        return self._value_min

    @property
    def value_max(self):
        return self._value_max

    def __len__(self):
        return self._rgba.shape[0]

    def tobytes(self):
        """Raw interleaved RGBA bytes, ``len(self) * 4`` long."""
        return self._rgba.tobytes()

    def lookup(self, values):
        """Map field values to RGBA entries.

        Non-finite values (the selective-rendering sentinel, NaN) map to a
        fully transparent black entry.
        """
        arr = np.asarray(values, dtype=np.float64)
        out = np.zeros(arr.shape + (4,), dtype=np.uint8)
        finite = np.isfinite(arr)
        if not finite.any():
            return out
        size = len(self)
        span = self._value_max - self._value_min
        if span > 0:
            index = np.floor((arr[finite] - self._value_min) * size / span)
        else:
            index = np.zeros(int(finite.sum()))
        index = np.clip(index, 0, size - 1).astype(np.intp)
        out[finite] = self._rgba[index]
        return out

    def to_colormap(self, name='transfer', transparent_below=False):
        """Table as a matplotlib colormap.

        With ``transparent_below`` an extra fully transparent entry is
        prepended, for values that sit just below ``value_min``.
        """
        rgba = self._rgba.astype(np.float64) / 255.0
        if transparent_below:
            rgba = np.vstack([np.zeros((1, 4)), rgba])
        return ListedColormap(rgba, name=name)

    def __repr__(self):
        return (f"TransferFunctionTable(entries={len(self)}, "
                f"value_min={self._value_min}, value_max={self._value_max})")


def _fit_length(entries, table_size, fallback):
    """Pad with the last entry (or ``fallback``) and truncate to ``table_size`` rows."""
    if entries.shape[0] == 0:
        entries = fallback.reshape(1, 4)
    if entries.shape[0] < table_size:
        pad = np.repeat(entries[-1:], table_size - entries.shape[0], axis=0)
        entries = np.concatenate([entries, pad])
    return entries[:table_size]


def build_transfer_table(points, table_size=TABLE_SIZE):
    """Build the RGBA lookup table for a list of control points.

    Points are sorted by value; a single point is duplicated into a flat ramp,
    and an empty list stands for one transparent black stop at value 0.
    Each adjacent pair fills ``pos2 - pos1`` entries, where a point's position
    is ``floor((value - min) * table_size / (max - min))``. Zero-width pairs
    contribute nothing. When all points share one value the table is constant.
    """
    if table_size < 1:
        raise ValueError(f"table_size must be positive, got {table_size}")
    stops = sorted((TransferControlPoint.from_any(p) for p in points), key=lambda p: p.value)
    if not stops:
        stops = [EMPTY_STOP]
    if len(stops) < 2:
        stops = [stops[0], stops[0]]

    value_min = stops[0].value
    value_max = stops[-1].value
    first = stops[0].rgba255()

    if value_max == value_min:
        entries = np.repeat(first.reshape(1, 4), table_size, axis=0)
    else:
        span = value_max - value_min
        segments = []
        for start, end in zip(stops[:-1], stops[1:]):
            pos1 = math.floor((start.value - value_min) * table_size / span)
            pos2 = math.floor((end.value - value_min) * table_size / span)
            if pos1 == pos2:
                continue
            width = pos2 - pos1
            if width == 1:
                # A one-entry interval keeps its end colour
                segments.append(end.rgba255().reshape(1, 4))
                continue
            a, b = start.rgba255(), end.rgba255()
            segments.append(np.column_stack([resample((a[k], b[k]), width) for k in range(4)]))
        entries = np.concatenate(segments) if segments else np.empty((0, 4))
        entries = _fit_length(entries, table_size, first)

    quantized = np.clip(np.rint(entries), 0, 255).astype(np.uint8)
    return TransferFunctionTable(quantized, value_min, value_max)


__all__ = ["EMPTY_STOP", "TransferControlPoint", "TransferFunctionTable", "build_transfer_table"]
