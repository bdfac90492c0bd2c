# planetex/synthesis.py
"""
Синтез карт высот, бликов и цвета планеты из многослойного шума
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .buffers import PixelBuffer
from .config import NoiseLayer
from .seeding import unsigned_seed
from .simplex_noise import octave_amplitude_sum, permutation_table, spherical_fbm

# Значение карты бликов для водной поверхности
SEA_SPECULAR = 115
# Ослабление рельефа ниже минимума при мягком ограничении
SOFT_CLAMP_FACTOR = 0.25


@dataclass
class SynthesisResult:
    """Результат синтеза: новые буферы того же размера, что и входные"""
    height: PixelBuffer
    specular: PixelBuffer
    diffuse: PixelBuffer

    def release(self) -> None:
        for buffer in (self.height, self.specular, self.diffuse):
            buffer.release()


def sphere_points(height: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Декодирование нормалей сферы из RGB в точки единичной сферы"""
    vectors = height[..., :3].astype(np.float64) / 255.0 * 2.0 - 1.0
    length = np.linalg.norm(vectors, axis=-1, keepdims=True)
    vectors = vectors / np.maximum(length, 1e-9)
    return (np.ascontiguousarray(vectors[..., 0]),
            np.ascontiguousarray(vectors[..., 1]),
            np.ascontiguousarray(vectors[..., 2]))


def layer_offsets(seed: int, count: int) -> np.ndarray:
    """Сдвиги области шума для каждого слоя, зависящие только от seed"""
    rng = np.random.RandomState(unsigned_seed(seed) ^ 0x5F3759DF)
    return rng.uniform(-512.0, 512.0, size=(count, 3))


def evaluate_layer(points, perm: np.ndarray, offset: np.ndarray,
                   layer: NoiseLayer) -> np.ndarray:
    """
    Значение одного слоя в [0, 1] с ограничением снизу уровнем minimum
    """
    xs, ys, zs = points
    total = octave_amplitude_sum(layer.strength, layer.resistance, layer.passes)
    if total <= 0:
        value = np.full(xs.shape, 0.5)
    else:
        shifted = offset + layer.shift
        raw = spherical_fbm(xs, ys, zs, perm, shifted, layer.passes,
                            layer.strength, layer.roughness, layer.resistance)
        value = np.clip(0.5 + 0.5 * raw / total, 0.0, 1.0)

    below = value < layer.minimum
    if layer.hard_clamp:
        value = np.where(below, layer.minimum, value)
    else:
        value = np.where(below, layer.minimum + (value - layer.minimum) * SOFT_CLAMP_FACTOR, value)
    return value


def elevation_field(seed: int, layers: Sequence[NoiseLayer],
                    height: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Высота в [0, 1] как взвешенная сумма слоев

    Returns:
        (elevation, sea_mask): море там, где базовый (последний) слой
        опустился до своего минимума
    """
    points = sphere_points(height)
    perm = permutation_table(unsigned_seed(seed))
    offsets = layer_offsets(seed, len(layers))

    accumulated = np.zeros(points[0].shape, dtype=np.float64)
    weights = 0.0
    sea_mask = np.zeros(points[0].shape, dtype=bool)
    for index, layer in enumerate(layers):
        value = evaluate_layer(points, perm, offsets[index], layer)
        weight = layer.strength if layer.strength > 0 else 0.0
        accumulated += value * weight
        weights += weight
        if index == len(layers) - 1:
            sea_mask = value <= layer.minimum

    if weights > 0:
        elevation = accumulated / weights
    else:
        elevation = np.full(accumulated.shape, 0.5)
    return np.clip(elevation, 0.0, 1.0), sea_mask


def _gradient_lookup(diffuse: np.ndarray) -> np.ndarray:
    """Полоса градиента: непрерывные непрозрачные пиксели первой строки"""
    row = diffuse[0]
    opaque = row[:, 3] > 0
    width = int(np.argmin(opaque)) if not opaque.all() else row.shape[0]
    return row[:width, :3]


def synthesize(seed: int, layers: Sequence[NoiseLayer], height: PixelBuffer,
               specular: PixelBuffer, diffuse: PixelBuffer) -> SynthesisResult:
    """
    Синтез текстур уровня. Чистая функция входных данных: входные
    буферы не изменяются, результат - новые буферы.

    Args:
        seed: 32-битный seed ландшафта
        layers: Слои шума (базовый слой последним)
        height: Нормали сферы (эталонное изображение высот)
        specular: Базовая карта бликов
        diffuse: Базовая карта цвета с полосой градиента в первых строках

    Returns:
        SynthesisResult с картами height, specular, diffuse
    """
    if not layers:
        raise ValueError("at least one noise layer is required")
    size = height.size
    if specular.size != size or diffuse.size != size:
        raise ValueError("base buffers must have identical dimensions")

    elevation, sea_mask = elevation_field(seed, layers, height.data)
    grey = np.round(elevation * 255.0).astype(np.uint8)

    height_out = np.empty((size, size, 4), dtype=np.uint8)
    height_out[..., 0] = grey
    height_out[..., 1] = grey
    height_out[..., 2] = grey
    height_out[..., 3] = 255

    specular_out = specular.data.copy()
    specular_out[sea_mask, :3] = SEA_SPECULAR
    specular_out[..., 3] = 255

    palette = _gradient_lookup(diffuse.data)
    diffuse_out = np.empty((size, size, 4), dtype=np.uint8)
    if len(palette):
        index = np.round(elevation * (len(palette) - 1)).astype(np.intp)
        diffuse_out[..., :3] = palette[index]
    else:
        diffuse_out[..., :3] = grey[..., None]
    diffuse_out[..., 3] = 255

    return SynthesisResult(PixelBuffer(height_out), PixelBuffer(specular_out),
                           PixelBuffer(diffuse_out))
