# planetex/normal_map.py
"""
Построение карты нормалей (bump map) из карты высот свертками 3x3
"""

from typing import Optional

import numpy as np
from scipy import ndimage

from .buffers import NEUTRAL_NORMAL, PixelBuffer, resample_rgba

# Градиент по X пишется в R, градиент по Y - в G
HORIZONTAL_KERNEL = np.array([
    [-1, 0, 1],
    [-2, 0, 2],
    [-1, 0, 1],
], dtype=np.int32)

VERTICAL_KERNEL = np.array([
    [1, 2, 1],
    [0, 0, 0],
    [-1, -2, -1],
], dtype=np.int32)

_CHANNELS = {"r": 0, "g": 1, "b": 2, "a": 3}


def convolute(source: np.ndarray, target: np.ndarray, kernel: np.ndarray,
              channels: str) -> None:
    """
    Свертка source ядром kernel с добавлением отклика в каналы target

    Ядро применяется без отражения (корреляция): kernel[0, 0] весит
    пиксель сверху слева. Крайние пиксели дублируются за границу
    изображения. Результат ограничивается диапазоном [0, 255]; каналы,
    не указанные в channels, не меняются.

    Args:
        source: Исходный RGBA массив (читается тот же канал, что пишется)
        target: RGBA массив того же размера, изменяется на месте
        kernel: Квадратное ядро нечетного размера
        channels: Строка из 'r', 'g', 'b', 'a'
    """
    if source.shape != target.shape:
        raise ValueError(f"shape mismatch: {source.shape} vs {target.shape}")
    for name in channels:
        index = _CHANNELS[name]
        response = ndimage.correlate(source[..., index].astype(np.int32), kernel,
                                     mode="nearest")
        combined = target[..., index].astype(np.int32) + response
        target[..., index] = np.clip(combined, 0, 255).astype(np.uint8)


def composite_over(target: np.ndarray, layer: np.ndarray) -> None:
    """Наложение layer поверх target (source-over по альфе), на месте"""
    alpha = layer[..., 3:4].astype(np.float32) / 255.0
    base_alpha = target[..., 3:4].astype(np.float32) / 255.0
    rgb = layer[..., :3] * alpha + target[..., :3] * (1.0 - alpha)
    out_alpha = alpha + base_alpha * (1.0 - alpha)
    target[..., :3] = np.clip(np.round(rgb), 0, 255).astype(np.uint8)
    target[..., 3:4] = np.clip(np.round(out_alpha * 255.0), 0, 255).astype(np.uint8)


def derive_normal_map(height: PixelBuffer, resolution: int,
                      previous: Optional[PixelBuffer] = None) -> PixelBuffer:
    """
    Карта нормалей уровня resolution

    Основа - нейтральная плоскость (128, 128, 255); карта предыдущего
    уровня, если есть, растягивается и накладывается поверх, сохраняя
    крупный рельеф. Затем градиенты высоты добавляются в R и G.

    Args:
        height: Карта высот уровня (серая, R == G == B)
        resolution: Размер уровня
        previous: Карта нормалей предыдущего уровня

    Returns:
        Новый PixelBuffer resolution x resolution
    """
    if height.size != resolution:
        raise ValueError(f"height map is {height.size}px, expected {resolution}px")

    normal = PixelBuffer.allocate(resolution, NEUTRAL_NORMAL)
    if previous is not None:
        composite_over(normal.data, resample_rgba(previous.data, resolution))

    convolute(height.data, normal.data, HORIZONTAL_KERNEL, "r")
    convolute(height.data, normal.data, VERTICAL_KERNEL, "g")
    return normal
