"""Colour specification parsing."""

import numbers

import matplotlib.colors as mcolors


def _normalize_components(components, original):
    if len(components) not in (3, 4):
        raise ValueError(f"Colour {original!r} must have 3 or 4 components")
    try:
        rgb = [float(c) for c in components[:3]]
    except (TypeError, ValueError):
        raise ValueError(f"Colour {original!r} has non-numeric components") from None
    if any(c < 0 for c in rgb):
        raise ValueError(f"Colour {original!r} has negative components")
    # Treat anything above 1 as 0-255 byte components
    if any(c > 1.0 for c in rgb):
        rgb = [c / 255.0 for c in rgb]
    return tuple(min(1.0, c) for c in rgb)


def to_rgb(color):
    """Convert a colour specification to an ``(r, g, b)`` tuple in [0, 1].

    Accepts matplotlib colour names and hex strings, ``0xRRGGBB`` integers,
    ``{'r', 'g', 'b'}`` mappings and 3/4 element sequences.
    """
    if isinstance(color, str):
        try:
            return tuple(float(c) for c in mcolors.to_rgb(color))
        except ValueError:
            raise ValueError(f"Unrecognised colour {color!r}") from None
    if isinstance(color, bool):
        raise ValueError(f"Unrecognised colour {color!r}")
    if isinstance(color, numbers.Integral):
        value = int(color)
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"Colour integer {color!r} outside 0x000000-0xFFFFFF")
        return ((value >> 16 & 0xFF) / 255.0, (value >> 8 & 0xFF) / 255.0, (value & 0xFF) / 255.0)
    if isinstance(color, dict):
        try:
            components = [color['r'], color['g'], color['b']]
        except KeyError as exc:
            raise ValueError(f"Colour mapping {color!r} is missing key {exc}") from None
        return _normalize_components(components, color)
    try:
        components = list(color)
    except TypeError:
        raise ValueError(f"Unrecognised colour {color!r}") from None
    return _normalize_components(components, color)


__all__ = ["to_rgb"]
