# planetex/gradient.py
"""
Цветовые градиенты планет, детерминированно получаемые из seed
"""

import colorsys
from typing import List, NamedTuple, Sequence

import numpy as np

from .seeding import unsigned_seed


class ColorStop(NamedTuple):
    """Опорная точка градиента: позиция в [0, 1] и цвет в байтах"""
    position: float
    r: int
    g: int
    b: int


def _hsv_bytes(h: float, s: float, v: float):
    r, g, b = colorsys.hsv_to_rgb(h % 1.0, min(max(s, 0.0), 1.0), min(max(v, 0.0), 1.0))
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


def generate_gradient(seed: int) -> List[ColorStop]:
    """
    Градиент высот планеты: глубокий океан -> мелководье -> берег ->
    низины -> высокогорье -> вершины

    Чистая функция seed: одинаковый seed всегда дает одинаковый градиент.

    Args:
        seed: 32-битный seed (знаковый или беззнаковый)

    Returns:
        Упорядоченный список ColorStop, первая позиция 0.0, последняя 1.0
    """
    rng = np.random.RandomState(unsigned_seed(seed))

    water_hue = 0.58 + rng.uniform(-0.12, 0.12)
    land_hue = rng.uniform(0.0, 1.0)
    peak_hue = land_hue + rng.uniform(-0.08, 0.08)

    shallow = rng.uniform(0.25, 0.40)
    shore = shallow + rng.uniform(0.03, 0.08)
    lowland = rng.uniform(0.55, 0.70)
    highland = rng.uniform(0.80, 0.90)

    return [
        ColorStop(0.0, *_hsv_bytes(water_hue, 0.85, rng.uniform(0.20, 0.35))),
        ColorStop(shallow, *_hsv_bytes(water_hue - 0.03, 0.70, rng.uniform(0.45, 0.60))),
        ColorStop(shore, *_hsv_bytes(land_hue + 0.05, 0.35, rng.uniform(0.65, 0.80))),
        ColorStop(lowland, *_hsv_bytes(land_hue, rng.uniform(0.45, 0.75), rng.uniform(0.40, 0.60))),
        ColorStop(highland, *_hsv_bytes(land_hue - 0.04, rng.uniform(0.25, 0.45), rng.uniform(0.30, 0.45))),
        ColorStop(1.0, *_hsv_bytes(peak_hue, rng.uniform(0.0, 0.15), rng.uniform(0.85, 0.98))),
    ]


def paint_gradient_strip(stops: Sequence[ColorStop], width: int, rows: int) -> np.ndarray:
    """
    Отрисовка горизонтального градиента (как линейный градиент canvas)

    Returns:
        Массив (rows, width, 4) uint8, непрозрачный
    """
    if not stops:
        raise ValueError("gradient needs at least one color stop")
    positions = np.array([stop.position for stop in stops], dtype=np.float64)
    if np.any(np.diff(positions) < 0):
        raise ValueError("gradient stops must be ordered by position")

    t = np.linspace(0.0, 1.0, width) if width > 1 else np.zeros(1)
    strip = np.empty((rows, width, 4), dtype=np.uint8)
    for channel, name in enumerate(("r", "g", "b")):
        values = np.array([getattr(stop, name) for stop in stops], dtype=np.float64)
        line = np.interp(t, positions, values)
        strip[:, :, channel] = np.clip(np.round(line), 0, 255).astype(np.uint8)
    strip[:, :, 3] = 255
    return strip
