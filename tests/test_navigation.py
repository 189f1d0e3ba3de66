import pytest

from mandelbrot_explorer.navigation import (
    ITERATION_STEP,
    MIN_ITERATIONS,
    ZOOM_STEP,
    apply_move,
    apply_moves,
    format_status,
    parse_moves,
)
from mandelbrot_explorer.viewport import InvalidViewSpec, ViewSpec


@pytest.fixture
def view():
    return ViewSpec(center_x=-0.5, center_y=0.0, zoom=2.0, max_iterations=200, width=700, height=700)


def test_pan_scales_with_zoom(view):
    assert apply_move(view, "left").center_x == pytest.approx(-0.55)
    assert apply_move(view, "right").center_x == pytest.approx(-0.45)
    assert apply_move(view, "up").center_y == pytest.approx(0.05)
    assert apply_move(view, "down").center_y == pytest.approx(-0.05)


def test_pan_keeps_other_fields(view):
    moved = apply_move(view, "left")

    assert moved.center_y == view.center_y
    assert moved.zoom == view.zoom
    assert moved.max_iterations == view.max_iterations
    assert (moved.width, moved.height) == (view.width, view.height)


def test_zoom_moves(view):
    assert apply_move(view, "in").zoom == view.zoom * ZOOM_STEP
    assert apply_move(view, "out").zoom == view.zoom / ZOOM_STEP


def test_iteration_moves(view):
    assert apply_move(view, "more").max_iterations == 200 + ITERATION_STEP
    assert apply_move(view, "less").max_iterations == 200 - ITERATION_STEP


def test_fewer_iterations_has_floor(view):
    low = apply_moves(view, ["less"] * 10)

    assert low.max_iterations == MIN_ITERATIONS


def test_moves_do_not_mutate(view):
    apply_moves(view, ["in", "left", "more"])

    assert view.zoom == 2.0
    assert view.center_x == -0.5
    assert view.max_iterations == 200


def test_parse_moves():
    assert parse_moves(" in, IN ,left,,") == ("in", "in", "left")
    assert parse_moves("") == ()
    assert parse_moves(None) == ()


def test_parse_moves_rejects_unknown():
    with pytest.raises(ValueError, match="sideways"):
        parse_moves("in,sideways")


def test_apply_move_rejects_unknown(view):
    with pytest.raises(ValueError):
        apply_move(view, "spin")


def test_apply_moves_sequence(view):
    result = apply_moves(view, parse_moves("in,in,out"))

    assert result.zoom == pytest.approx(view.zoom * ZOOM_STEP)


def test_format_status():
    view = ViewSpec(center_x=-0.5, center_y=0.0, zoom=1.0, max_iterations=200, width=700, height=700)

    assert format_status(view, 12) == "Center=(-0.5,0), Zoom=1, MaxIter=200, Render time=12 ms"


def test_format_status_precision():
    view = ViewSpec(center_x=-0.743643887037151, center_y=0.13182590420533, zoom=250.0, max_iterations=450, width=8, height=8)

    assert format_status(view, 3) == "Center=(-0.74364389,0.1318259), Zoom=250, MaxIter=450, Render time=3 ms"


@pytest.mark.parametrize("move", ["left", "right", "up", "down"])
def test_pan_rejects_zero_zoom(move):
    view = ViewSpec(center_x=0.0, center_y=0.0, zoom=0.0, max_iterations=50, width=4, height=4)

    with pytest.raises(InvalidViewSpec):
        apply_move(view, move)
