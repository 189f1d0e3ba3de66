"""Public API for Mandelbrot rendering utilities."""

from .colors import PixelColor, bgra_table, color_for, colormap_table, get_colormap
from .navigation import apply_move, apply_moves, format_status, parse_moves
from .renderer import RenderResult, escape_time, iteration_counts, render, render_rows
from .viewport import (
    BASE_SPAN,
    MAX_DIMENSION,
    MAX_ITERATIONS,
    ComplexSample,
    InvalidDimension,
    InvalidViewSpec,
    ViewSpec,
    Viewport,
    map_viewport,
    pixel_to_complex,
)

__all__ = [
    "BASE_SPAN",
    "ComplexSample",
    "InvalidDimension",
    "InvalidViewSpec",
    "MAX_DIMENSION",
    "MAX_ITERATIONS",
    "PixelColor",
    "RenderResult",
    "ViewSpec",
    "Viewport",
    "apply_move",
    "apply_moves",
    "bgra_table",
    "color_for",
    "colormap_table",
    "escape_time",
    "format_status",
    "get_colormap",
    "iteration_counts",
    "map_viewport",
    "parse_moves",
    "pixel_to_complex",
    "render",
    "render_rows",
]
