"""Tests for seeded color gradients."""

import numpy as np
import pytest

from planetex.gradient import ColorStop, generate_gradient, paint_gradient_strip


def test_gradient_is_deterministic():
    assert generate_gradient(96354) == generate_gradient(96354)


def test_gradient_depends_on_seed():
    assert generate_gradient(96354) != generate_gradient(-862545276)


def test_signed_and_unsigned_seeds_agree():
    assert generate_gradient(-1) == generate_gradient(0xFFFFFFFF)


def test_stops_are_ordered_and_span_unit_interval():
    stops = generate_gradient(12345)
    positions = [stop.position for stop in stops]
    assert positions[0] == 0.0
    assert positions[-1] == 1.0
    assert positions == sorted(positions)
    for stop in stops:
        assert all(0 <= channel <= 255 for channel in (stop.r, stop.g, stop.b))


def test_paint_strip_endpoints():
    stops = [ColorStop(0.0, 0, 0, 0), ColorStop(1.0, 200, 100, 50)]
    strip = paint_gradient_strip(stops, 256, 5)

    assert strip.shape == (5, 256, 4)
    assert strip.dtype == np.uint8
    assert np.all(strip[..., 3] == 255)
    assert tuple(strip[0, 0, :3]) == (0, 0, 0)
    assert tuple(strip[0, -1, :3]) == (200, 100, 50)
    # все строки одинаковы
    assert np.all(strip == strip[0])
    # линейная интерполяция монотонна
    assert np.all(np.diff(strip[0, :, 0].astype(int)) >= 0)


def test_paint_strip_rejects_bad_stops():
    with pytest.raises(ValueError):
        paint_gradient_strip([], 16, 1)
    with pytest.raises(ValueError):
        paint_gradient_strip([ColorStop(0.8, 0, 0, 0), ColorStop(0.2, 1, 1, 1)], 16, 1)
