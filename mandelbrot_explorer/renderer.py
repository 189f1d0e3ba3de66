"""Escape-time rendering of Mandelbrot views."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .colors import bgra_table
from .viewport import ZERO, ComplexSample, ViewSpec, Viewport, map_viewport

# Squared divergence radius; |z| > 2 guarantees escape.
HORIZON_SQUARED = 4.0
BYTES_PER_PIXEL = 4


@dataclass(frozen=True)
class RenderResult:
    """A finished frame together with the data it was computed from."""

    pixels: bytes
    iterations: np.ndarray
    elapsed: float
    viewport: Viewport
    view: ViewSpec

    @property
    def elapsed_ms(self) -> int:
        return int(self.elapsed * 1000)


def escape_time(re: float, im: float, max_iterations: int) -> int:
    """Number of iterations of ``z -> z*z + c`` before ``|z|`` exceeds 2."""

    c = ComplexSample(re, im)
    z = ZERO
    iteration = 0
    while iteration < max_iterations and z.squared_magnitude() <= HORIZON_SQUARED:
        z = z * z + c
        iteration += 1
    return iteration


@tf.function
def _escape_step(zr: tf.Tensor, zi: tf.Tensor, cr: tf.Tensor, ci: tf.Tensor, ns: tf.Tensor, active: tf.Tensor) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every pixel that is still bounded by one iteration."""

    zr_new = zr * zr - zi * zi + cr
    zi_new = 2.0 * zr * zi + ci
    zr = tf.where(active, zr_new, zr)
    zi = tf.where(active, zi_new, zi)
    ns = ns + tf.cast(active, tf.int32)
    horizon = tf.constant(HORIZON_SQUARED, dtype=zr.dtype)
    active = tf.logical_and(active, zr * zr + zi * zi <= horizon)
    return zr, zi, ns, active


@tf.function
def _escape_run(cr: tf.Tensor, ci: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate the whole grid, stopping as soon as every pixel has escaped."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zr = tf.zeros_like(cr)
    zi = tf.zeros_like(ci)
    ns = tf.zeros_like(cr, tf.int32)
    active = tf.ones_like(ns, tf.bool)

    def cond(i, zr, zi, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zr, zi, ns, active):
        zr, zi, ns, active = _escape_step(zr, zi, cr, ci, ns, active)
        return i + 1, zr, zi, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zr, zi, ns, active))
    return ns


def _row_counts(view: ViewSpec, viewport: Viewport, start: int, stop: int, device: Optional[str]) -> np.ndarray:
    if stop <= start:
        return np.zeros((0, view.width), dtype=np.int32)

    x = viewport.real_axis()
    y = viewport.imaginary_axis(start, stop)

    with tf.device(device if device is not None else "/CPU:0"):
        x_tf = tf.convert_to_tensor(x, dtype=tf.float64)
        y_tf = tf.convert_to_tensor(y, dtype=tf.float64)
        cr, ci = tf.meshgrid(x_tf, y_tf)
        ns = _escape_run(cr, ci, tf.constant(view.max_iterations, dtype=tf.int32))

    return ns.numpy()


def _check_rows(view: ViewSpec, start: int, stop: int) -> None:
    if not 0 <= start <= stop <= view.height:
        raise IndexError(f"row range [{start}, {stop}) outside image of height {view.height}")


def iteration_counts(view: ViewSpec, *, device: Optional[str] = None) -> np.ndarray:
    """Escape counts for every pixel as a ``(height, width)`` int32 array."""

    view.validate()
    return _row_counts(view, map_viewport(view), 0, view.height, device)


def _colorize(counts: np.ndarray, table: np.ndarray) -> bytes:
    return table[counts].tobytes()


def _resolve_palette(view: ViewSpec, palette: Optional[np.ndarray]) -> np.ndarray:
    if palette is None:
        return bgra_table(view.max_iterations)
    if palette.shape != (view.max_iterations + 1, BYTES_PER_PIXEL):
        raise ValueError(
            f"palette must have shape ({view.max_iterations + 1}, {BYTES_PER_PIXEL}), got {palette.shape}"
        )
    return palette.astype(np.uint8, copy=False)


def render_rows(
    view: ViewSpec,
    start: int,
    stop: int,
    *,
    palette: Optional[np.ndarray] = None,
    device: Optional[str] = None,
) -> bytes:
    """Render the half-open row range ``[start, stop)`` into BGRA bytes.

    Rows are independent, so concatenating the output of any partition of
    ``[0, height)`` reproduces :func:`render` byte for byte.
    """

    view.validate()
    _check_rows(view, start, stop)
    table = _resolve_palette(view, palette)
    counts = _row_counts(view, map_viewport(view), start, stop, device)
    return _colorize(counts, table)


def render(
    view: ViewSpec,
    *,
    palette: Optional[np.ndarray] = None,
    device: Optional[str] = None,
) -> RenderResult:
    """Render ``view`` into a fresh BGRA buffer, row-major, top row first."""

    view.validate()
    table = _resolve_palette(view, palette)

    started = time.perf_counter()
    viewport = map_viewport(view)
    counts = _row_counts(view, viewport, 0, view.height, device)
    pixels = _colorize(counts, table)
    elapsed = time.perf_counter() - started

    return RenderResult(
        pixels=pixels,
        iterations=counts,
        elapsed=elapsed,
        viewport=viewport,
        view=view,
    )
