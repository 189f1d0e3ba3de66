"""Mapping between output pixels and the visible region of the complex plane."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

BASE_SPAN = 3.5
MAX_DIMENSION = 8192
MAX_ITERATIONS = 1_000_000


class InvalidViewSpec(ValueError):
    """Raised when a view cannot be rendered."""


class InvalidDimension(InvalidViewSpec):
    """Raised for a zero-sized output image."""


@dataclass(frozen=True)
class ViewSpec:
    """Parameters that describe a single render of the Mandelbrot set."""

    center_x: float
    center_y: float
    zoom: float
    max_iterations: int
    width: int
    height: int

    def validate(self) -> None:
        if self.width == 0 or self.height == 0:
            raise InvalidDimension(f"image size must be non-zero, got {self.width}x{self.height}")
        if self.width < 0 or self.height < 0:
            raise InvalidViewSpec(f"image size must be positive, got {self.width}x{self.height}")
        if self.width > MAX_DIMENSION or self.height > MAX_DIMENSION:
            raise InvalidViewSpec(f"image size {self.width}x{self.height} exceeds {MAX_DIMENSION}x{MAX_DIMENSION}")
        if not math.isfinite(self.zoom) or self.zoom <= 0:
            raise InvalidViewSpec(f"zoom must be a positive number, got {self.zoom}")
        if self.max_iterations <= 0:
            raise InvalidViewSpec(f"max_iterations must be positive, got {self.max_iterations}")
        if self.max_iterations > MAX_ITERATIONS:
            raise InvalidViewSpec(f"max_iterations {self.max_iterations} exceeds {MAX_ITERATIONS}")
        if not (math.isfinite(self.center_x) and math.isfinite(self.center_y)):
            raise InvalidViewSpec(f"center must be finite, got ({self.center_x}, {self.center_y})")


@dataclass(frozen=True)
class ComplexSample:
    """A point of the complex plane with just the arithmetic the iteration needs."""

    re: float
    im: float

    def __add__(self, other: ComplexSample) -> ComplexSample:
        return ComplexSample(self.re + other.re, self.im + other.im)

    def __mul__(self, other: ComplexSample) -> ComplexSample:
        return ComplexSample(
            self.re * other.re - self.im * other.im,
            self.re * other.im + self.im * other.re,
        )

    def squared_magnitude(self) -> float:
        return self.re * self.re + self.im * self.im


ZERO = ComplexSample(0.0, 0.0)


@dataclass(frozen=True)
class Viewport:
    """The rectangle of the complex plane covered by a render."""

    min_x: float
    min_y: float
    view_width: float
    view_height: float
    width: int
    height: int

    @property
    def max_x(self) -> float:
        return self.min_x + self.view_width

    @property
    def max_y(self) -> float:
        return self.min_y + self.view_height

    def real_axis(self) -> np.ndarray:
        """Real part of every pixel column, left to right."""

        cols = np.arange(self.width, dtype=np.float64)
        return self.min_x + (cols / np.float64(self.width)) * self.view_width

    def imaginary_axis(self, start: int = 0, stop: int | None = None) -> np.ndarray:
        """Imaginary part of every pixel row in ``[start, stop)``, top row first."""

        stop = self.height if stop is None else stop
        rows = np.arange(start, stop, dtype=np.float64)
        return self.min_y + (rows / np.float64(self.height)) * self.view_height


def map_viewport(view: ViewSpec) -> Viewport:
    """Derive the visible rectangle for ``view``.

    The horizontal extent at zoom 1 is ``BASE_SPAN``; the vertical extent
    follows the image aspect ratio so pixels stay square.
    """

    if view.width == 0 or view.height == 0:
        raise InvalidDimension(f"image size must be non-zero, got {view.width}x{view.height}")

    scale = 1.0 / view.zoom
    aspect = view.width / view.height
    view_width = BASE_SPAN * scale
    view_height = view_width / aspect

    return Viewport(
        min_x=view.center_x - view_width / 2.0,
        min_y=view.center_y - view_height / 2.0,
        view_width=view_width,
        view_height=view_height,
        width=view.width,
        height=view.height,
    )


def pixel_to_complex(viewport: Viewport, x: int, y: int) -> ComplexSample:
    if not (0 <= x < viewport.width and 0 <= y < viewport.height):
        raise IndexError(f"pixel ({x}, {y}) outside {viewport.width}x{viewport.height} image")
    re = viewport.min_x + (x / viewport.width) * viewport.view_width
    im = viewport.min_y + (y / viewport.height) * viewport.view_height
    return ComplexSample(re, im)
