import pytest

from mandelbrot_explorer.viewport import (
    BASE_SPAN,
    MAX_DIMENSION,
    MAX_ITERATIONS,
    ComplexSample,
    InvalidDimension,
    InvalidViewSpec,
    ViewSpec,
    map_viewport,
    pixel_to_complex,
)


def make_view(**overrides):
    params = dict(center_x=-0.5, center_y=0.0, zoom=1.0, max_iterations=200, width=4, height=4)
    params.update(overrides)
    return ViewSpec(**params)


def test_default_view_bounds():
    viewport = map_viewport(make_view())

    assert viewport.view_width == BASE_SPAN
    assert viewport.view_height == BASE_SPAN
    assert viewport.min_x == -2.25
    assert viewport.min_y == -1.75
    assert viewport.max_x == 1.25
    assert viewport.max_y == 1.75


def test_aspect_ratio_shrinks_height():
    viewport = map_viewport(make_view(width=200, height=100))

    assert viewport.view_width == BASE_SPAN
    assert viewport.view_height == BASE_SPAN / 2


@pytest.mark.parametrize("zoom", [2.0, 3.0, 10.0, 1e6])
def test_zoom_shrinks_view_proportionally(zoom):
    base = map_viewport(make_view(width=30, height=20))
    zoomed = map_viewport(make_view(width=30, height=20, zoom=zoom))

    assert zoomed.view_width == pytest.approx(base.view_width / zoom)
    assert zoomed.view_height == pytest.approx(base.view_height / zoom)
    assert zoomed.view_width < base.view_width


def test_view_is_centered():
    viewport = map_viewport(make_view(center_x=0.3, center_y=-0.2, zoom=5.0, width=64, height=48))

    assert (viewport.min_x + viewport.max_x) / 2 == pytest.approx(0.3)
    assert (viewport.min_y + viewport.max_y) / 2 == pytest.approx(-0.2)


def test_pixel_to_complex_matches_mapping():
    viewport = map_viewport(make_view())

    assert pixel_to_complex(viewport, 0, 0) == ComplexSample(-2.25, -1.75)
    assert pixel_to_complex(viewport, 2, 2) == ComplexSample(-0.5, 0.0)
    assert pixel_to_complex(viewport, 3, 1) == ComplexSample(-2.25 + 0.75 * 3.5, -1.75 + 0.25 * 3.5)


def test_pixel_to_complex_is_deterministic():
    viewport = map_viewport(make_view(center_x=-0.743643887, center_y=0.131825904, zoom=1234.5, width=97, height=61))

    assert pixel_to_complex(viewport, 41, 17) == pixel_to_complex(viewport, 41, 17)


def test_axes_agree_with_pixel_mapping():
    viewport = map_viewport(make_view(center_x=0.1, zoom=3.7, width=13, height=9))
    xs = viewport.real_axis()
    ys = viewport.imaginary_axis()

    for y in range(viewport.height):
        for x in range(viewport.width):
            sample = pixel_to_complex(viewport, x, y)
            assert sample.re == xs[x]
            assert sample.im == ys[y]


def test_imaginary_axis_slice():
    viewport = map_viewport(make_view(width=8, height=8))

    assert list(viewport.imaginary_axis(2, 5)) == list(viewport.imaginary_axis()[2:5])


@pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (4, 0), (0, 4)])
def test_pixel_outside_image(x, y):
    viewport = map_viewport(make_view())

    with pytest.raises(IndexError):
        pixel_to_complex(viewport, x, y)


@pytest.mark.parametrize("overrides", [{"width": 0}, {"height": 0}])
def test_zero_dimension_is_rejected(overrides):
    view = make_view(**overrides)

    with pytest.raises(InvalidDimension):
        map_viewport(view)
    with pytest.raises(InvalidDimension):
        view.validate()


@pytest.mark.parametrize(
    "overrides",
    [
        {"zoom": 0.0},
        {"zoom": -2.0},
        {"zoom": float("inf")},
        {"zoom": float("nan")},
        {"max_iterations": 0},
        {"max_iterations": -10},
        {"max_iterations": MAX_ITERATIONS + 1},
        {"width": -4},
        {"height": -3},
        {"width": MAX_DIMENSION + 1},
        {"height": MAX_DIMENSION + 1},
        {"center_x": float("nan")},
    ],
)
def test_invalid_view_spec(overrides):
    with pytest.raises(InvalidViewSpec):
        make_view(**overrides).validate()


def test_invalid_view_spec_is_value_error():
    assert issubclass(InvalidViewSpec, ValueError)
    assert issubclass(InvalidDimension, InvalidViewSpec)


def test_limits_are_accepted():
    make_view(width=MAX_DIMENSION, height=1, max_iterations=MAX_ITERATIONS).validate()


def test_complex_sample_arithmetic():
    a = ComplexSample(1.5, -2.0)
    b = ComplexSample(0.25, 3.0)

    product = a * b
    expected = complex(1.5, -2.0) * complex(0.25, 3.0)
    assert product.re == pytest.approx(expected.real)
    assert product.im == pytest.approx(expected.imag)
    assert a + b == ComplexSample(1.75, 1.0)
    assert a.squared_magnitude() == 6.25
