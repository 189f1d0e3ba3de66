"""Caller-side view transitions for interactive exploration."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable

from .viewport import InvalidViewSpec, ViewSpec

PAN_FRACTION = 0.1
ZOOM_STEP = 1.25
ITERATION_STEP = 50
MIN_ITERATIONS = 50


def pan(view: ViewSpec, dx: int, dy: int) -> ViewSpec:
    """Shift the center by ``PAN_FRACTION / zoom`` per unit step.

    Positive ``dy`` moves up, towards larger imaginary parts.
    """

    if not view.zoom > 0:
        raise InvalidViewSpec(f"cannot pan a view with zoom {view.zoom}")
    move = PAN_FRACTION / view.zoom
    return replace(view, center_x=view.center_x + dx * move, center_y=view.center_y + dy * move)


def zoom_in(view: ViewSpec) -> ViewSpec:
    return replace(view, zoom=view.zoom * ZOOM_STEP)


def zoom_out(view: ViewSpec) -> ViewSpec:
    return replace(view, zoom=view.zoom / ZOOM_STEP)


def more_iterations(view: ViewSpec) -> ViewSpec:
    return replace(view, max_iterations=view.max_iterations + ITERATION_STEP)


def fewer_iterations(view: ViewSpec) -> ViewSpec:
    return replace(view, max_iterations=max(MIN_ITERATIONS, view.max_iterations - ITERATION_STEP))


MOVES: dict[str, Callable[[ViewSpec], ViewSpec]] = {
    "left": lambda view: pan(view, -1, 0),
    "right": lambda view: pan(view, 1, 0),
    "up": lambda view: pan(view, 0, 1),
    "down": lambda view: pan(view, 0, -1),
    "in": zoom_in,
    "out": zoom_out,
    "more": more_iterations,
    "less": fewer_iterations,
}


def parse_moves(text: str | None) -> tuple[str, ...]:
    """Split a comma separated move list such as ``"in, in, left"``."""

    if not text:
        return ()
    moves = []
    for token in text.split(","):
        name = token.strip().lower()
        if not name:
            continue
        if name not in MOVES:
            raise ValueError(f"Unknown move '{name}'. Valid moves: {', '.join(sorted(MOVES))}.")
        moves.append(name)
    return tuple(moves)


def apply_move(view: ViewSpec, move: str) -> ViewSpec:
    try:
        transition = MOVES[move]
    except KeyError:
        raise ValueError(f"Unknown move '{move}'. Valid moves: {', '.join(sorted(MOVES))}.") from None
    return transition(view)


def apply_moves(view: ViewSpec, moves: Iterable[str]) -> ViewSpec:
    for move in moves:
        view = apply_move(view, move)
    return view


def format_status(view: ViewSpec, elapsed_ms: int) -> str:
    """Status line shown after each render."""

    return (
        f"Center=({_trim(view.center_x, 8)},{_trim(view.center_y, 8)}), "
        f"Zoom={_trim(view.zoom, 3)}, MaxIter={view.max_iterations}, "
        f"Render time={elapsed_ms} ms"
    )


def _trim(value: float, digits: int) -> str:
    text = f"{value:.{digits}f}".rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text
