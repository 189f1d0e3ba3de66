"""Iteration count to color conversion."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

try:
    from matplotlib import colormaps as _mpl_colormaps
except ImportError:  # Matplotlib < 3.5
    from matplotlib import cm as _mpl_colormaps  # type: ignore

OPAQUE = 255


@dataclass(frozen=True)
class PixelColor:
    r: int
    g: int
    b: int

    def bgra(self) -> bytes:
        return bytes((self.b, self.g, self.r, OPAQUE))


BLACK = PixelColor(0, 0, 0)


def _channel(value: float) -> int:
    return min(max(int(math.floor(value + 0.5)), 0), 255)


def color_for(iteration: int, max_iterations: int) -> PixelColor:
    """Classic ramp: blue for fast escapes, through green, to red near the budget."""

    if iteration == max_iterations:
        return BLACK
    t = iteration / max_iterations
    return PixelColor(
        _channel(255 * t),
        _channel(255 * math.sqrt(t)),
        _channel(255 * (1.0 - t)),
    )


def _to_bytes(values: np.ndarray) -> np.ndarray:
    return np.clip(np.floor(values + 0.5), 0, 255).astype(np.uint8)


def bgra_table(max_iterations: int) -> np.ndarray:
    """Return a ``(max_iterations + 1, 4)`` BGRA lookup table indexed by iteration count."""

    counts = np.arange(max_iterations + 1, dtype=np.float64)
    t = counts / np.float64(max_iterations)
    table = np.empty((max_iterations + 1, 4), dtype=np.uint8)
    table[:, 0] = _to_bytes(255 * (1.0 - t))
    table[:, 1] = _to_bytes(255 * np.sqrt(t))
    table[:, 2] = _to_bytes(255 * t)
    table[:, 3] = OPAQUE
    table[max_iterations, :3] = 0
    return table


def get_colormap(name: str):
    try:
        return _mpl_colormaps.get_cmap(name)
    except (KeyError, ValueError) as exc:
        raise ValueError(f"unknown colormap '{name}'") from exc


def colormap_table(
    name: str,
    max_iterations: int,
    inside: tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Build a BGRA lookup table by sampling a matplotlib colormap.

    Escaping counts are sampled at ``iteration / max_iterations``; the last
    entry, used for in-set pixels, is ``inside`` given as RGB.
    """

    cmap = get_colormap(name)
    t = np.arange(max_iterations + 1, dtype=np.float64) / np.float64(max_iterations)
    rgba = np.array(cmap(t), copy=True)
    rgb = _to_bytes(rgba[:, :3] * 255)

    table = np.empty((max_iterations + 1, 4), dtype=np.uint8)
    table[:, 0] = rgb[:, 2]
    table[:, 1] = rgb[:, 1]
    table[:, 2] = rgb[:, 0]
    table[:, 3] = OPAQUE
    table[max_iterations, :3] = (inside[2], inside[1], inside[0])
    return table
