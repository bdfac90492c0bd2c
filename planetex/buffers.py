# planetex/buffers.py
"""
Пиксельные буферы RGBA с явной передачей владения и подготовка базовых
изображений для синтеза текстур
"""

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from scipy import ndimage

from .errors import AssetUnavailableError, BufferDetachedError
from .gradient import ColorStop, paint_gradient_strip

NEUTRAL_NORMAL = (128, 128, 255, 255)


class PixelBuffer:
    """
    Квадратная сетка RGBA-пикселей (uint8, форма (size, size, 4))

    У буфера ровно один владелец. transfer() передает массив новому
    объекту, а исходный становится недоступным; release() уничтожает
    данные. Любое обращение к отсоединенному буферу вызывает
    BufferDetachedError.
    """

    __slots__ = ("_data", "_status")

    def __init__(self, data: np.ndarray):
        if data.ndim != 3 or data.shape[2] != 4 or data.shape[0] != data.shape[1]:
            raise ValueError(f"expected a square RGBA array, got shape {data.shape}")
        if data.dtype != np.uint8:
            raise ValueError(f"expected uint8 pixels, got {data.dtype}")
        self._data = data
        self._status = "live"

    @classmethod
    def allocate(cls, size: int, fill: Sequence[int] = (0, 0, 0, 0)) -> "PixelBuffer":
        """Новый буфер size x size, залитый цветом fill"""
        if size <= 0:
            raise ValueError(f"buffer size must be positive, got {size}")
        data = np.empty((size, size, 4), dtype=np.uint8)
        data[...] = np.asarray(fill, dtype=np.uint8)
        return cls(data)

    @property
    def data(self) -> np.ndarray:
        if self._data is None:
            raise BufferDetachedError(f"pixel buffer is {self._status}")
        return self._data

    @property
    def size(self) -> int:
        return self.data.shape[0]

    @property
    def alive(self) -> bool:
        return self._data is not None

    @property
    def released(self) -> bool:
        return self._status == "released"

    def transfer(self) -> "PixelBuffer":
        """Передача владения: новый объект получает массив, этот отсоединяется"""
        moved = PixelBuffer(self.data)
        self._data = None
        self._status = "transferred"
        return moved

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())

    def release(self) -> None:
        """Освобождение данных; повторный вызов ничего не делает"""
        if self._data is not None:
            self._data = None
            self._status = "released"

    def resampled(self, size: int) -> "PixelBuffer":
        """Билинейное масштабирование до size x size"""
        return PixelBuffer(resample_rgba(self.data, size))

    def __repr__(self) -> str:
        if self._data is None:
            return f"PixelBuffer({self._status})"
        return f"PixelBuffer({self.size}x{self.size})"


def resample_rgba(data: np.ndarray, size: int) -> np.ndarray:
    """Билинейное масштабирование RGBA массива до size x size"""
    height, width = data.shape[:2]
    if height == size and width == size:
        return data.copy()
    factors = (size / height, size / width, 1.0)
    scaled = ndimage.zoom(data.astype(np.float32), factors, order=1, mode="nearest")
    # zoom округляет форму; подгоняем под точный размер
    scaled = scaled[:size, :size]
    if scaled.shape[0] < size or scaled.shape[1] < size:
        pad = ((0, size - scaled.shape[0]), (0, size - scaled.shape[1]), (0, 0))
        scaled = np.pad(scaled, pad, mode="edge")
    return np.clip(np.round(scaled), 0, 255).astype(np.uint8)


def sphere_normal_map(size: int) -> np.ndarray:
    """
    Карта нормалей сферы в пространстве объекта (равнопромежуточная проекция)

    Каждый пиксель кодирует точку единичной сферы: RGB = (n + 1) / 2 * 255.

    Returns:
        Массив (size, size, 4) uint8
    """
    centers = (np.arange(size, dtype=np.float64) + 0.5) / size
    lon = centers * 2.0 * np.pi - np.pi
    lat = (0.5 - centers) * np.pi
    lon_grid, lat_grid = np.meshgrid(lon, lat)

    normals = np.stack([
        np.cos(lat_grid) * np.cos(lon_grid),
        np.sin(lat_grid),
        np.cos(lat_grid) * np.sin(lon_grid),
    ], axis=-1)

    image = np.empty((size, size, 4), dtype=np.uint8)
    image[..., :3] = np.clip(np.round((normals + 1.0) * 0.5 * 255.0), 0, 255)
    image[..., 3] = 255
    return image


class ReferenceImage:
    """
    Эталонное изображение высот (нормали сферы), из которого строится
    базовый буфер высот на каждом уровне разрешения

    По умолчанию изображение вычисляется аналитически; from_file()
    загружает его из файла через imageio.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path is not None else None
        self._image: Optional[np.ndarray] = None

    @classmethod
    def sphere(cls) -> "ReferenceImage":
        return cls()

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ReferenceImage":
        return cls(path)

    @property
    def loaded(self) -> bool:
        return self.path is None or self._image is not None

    def load(self) -> None:
        """
        Загрузка изображения (однократно)

        Raises:
            AssetUnavailableError: файл отсутствует или не читается
        """
        if self.loaded:
            return
        try:
            import imageio
        except ImportError as e:
            raise AssetUnavailableError(
                f"imageio is required to load reference image {self.path}") from e
        imread = imageio.v3.imread if hasattr(imageio, "v3") else imageio.imread
        try:
            image = np.asarray(imread(self.path))
        except (OSError, ValueError) as e:
            raise AssetUnavailableError(f"cannot load reference image {self.path}: {e}") from e
        self._image = _as_square_rgba(image, self.path)

    def render(self, size: int) -> PixelBuffer:
        """Эталонное изображение, приведенное к size x size"""
        if self.path is None:
            return PixelBuffer(sphere_normal_map(size))
        self.load()
        return PixelBuffer(resample_rgba(self._image, size))


def _as_square_rgba(image: np.ndarray, source) -> np.ndarray:
    if image.ndim == 2:
        image = np.repeat(image[:, :, None], 3, axis=2)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise AssetUnavailableError(f"unsupported reference image shape {image.shape} in {source}")
    if image.dtype != np.uint8:
        peak = float(image.max()) or 1.0
        image = np.clip(image.astype(np.float64) / peak * 255.0, 0, 255).astype(np.uint8)
    if image.shape[2] == 3:
        alpha = np.full(image.shape[:2] + (1,), 255, dtype=np.uint8)
        image = np.concatenate([image, alpha], axis=2)
    height, width = image.shape[:2]
    if height != width:
        # Растягиваем до квадрата, как drawImage в квадратный холст
        side = max(height, width)
        factors = (side / height, side / width, 1.0)
        image = np.clip(np.round(ndimage.zoom(image.astype(np.float32), factors, order=1)),
                        0, 255).astype(np.uint8)[:side, :side]
    return image


def prepare_base_buffers(
        size: int,
        reference: ReferenceImage,
        stops: Sequence[ColorStop],
        strip: Tuple[int, int] = (256, 5),
) -> Tuple[PixelBuffer, PixelBuffer, PixelBuffer]:
    """
    Базовые буферы уровня до добавления процедурных деталей

    Returns:
        (height, specular, diffuse):
        height - эталонное изображение в разрешении уровня;
        specular - сплошной черный;
        diffuse - прозрачный, с полосой градиента в левом верхнем углу
        (шириной не более size)
    """
    height = reference.render(size)
    specular = PixelBuffer.allocate(size, (0, 0, 0, 255))
    diffuse = PixelBuffer.allocate(size, (0, 0, 0, 0))

    strip_width, strip_rows = strip
    # Полоса всегда содержит весь градиент; на узких уровнях она сжата
    cols = min(strip_width, size)
    rows = min(strip_rows, size)
    diffuse.data[:rows, :cols] = paint_gradient_strip(stops, cols, rows)
    return height, specular, diffuse
