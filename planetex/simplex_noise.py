# planetex/simplex_noise.py
"""
3D симплекс-шум и фрактальный шум на поверхности сферы
На основе алгоритма Стифана Густавсона (Stefan Gustavson)
"""

import numpy as np
from numba import jit, prange

# ----------------------------------------------------------------------
# Константы для симплекс-шума
# ----------------------------------------------------------------------

_GRAD3 = np.array([
    [1, 1, 0], [-1, 1, 0], [1, -1, 0], [-1, -1, 0],
    [1, 0, 1], [-1, 0, 1], [1, 0, -1], [-1, 0, -1],
    [0, 1, 1], [0, -1, 1], [0, 1, -1], [0, -1, -1]
], dtype=np.float64)

_F3 = 1.0 / 3.0
_G3 = 1.0 / 6.0

# Октавы с амплитудой ниже порога не вычисляются
AMPLITUDE_CUTOFF = 0.001


def permutation_table(seed: int) -> np.ndarray:
    """
    Таблица перестановок (длиной 512) для заданного seed

    Args:
        seed: Беззнаковый 32-битный seed

    Returns:
        Удвоенная перестановка 0..255, int64
    """
    rng = np.random.RandomState(seed)
    perm = rng.permutation(256).astype(np.int64)
    return np.concatenate([perm, perm])


def octave_amplitude_sum(strength: float, resistance: float, passes: int) -> float:
    """Сумма амплитуд октав, фактически участвующих в spherical_fbm"""
    total = 0.0
    amplitude = strength
    for _ in range(passes):
        total += amplitude
        amplitude *= resistance
        if amplitude < AMPLITUDE_CUTOFF:
            break
    return total

# ----------------------------------------------------------------------
# Вспомогательные функции
# ----------------------------------------------------------------------

@jit(nopython=True, cache=True)
def _dot3(g: np.ndarray, x: float, y: float, z: float) -> float:
    return g[0] * x + g[1] * y + g[2] * z

@jit(nopython=True, cache=True)
def _fast_floor(x: float) -> int:
    xi = int(x)
    return xi if x >= xi else xi - 1

# ----------------------------------------------------------------------
# 3D симплекс-шум
# ----------------------------------------------------------------------

@jit(nopython=True, cache=True)
def simplex_noise_3d(x: float, y: float, z: float, perm: np.ndarray) -> float:
    """
    3D симплекс-шум

    Args:
        x, y, z: Координаты
        perm: Таблица перестановок (длиной 512)

    Returns:
        Значение шума в диапазоне примерно [-1, 1]
    """
    s = (x + y + z) * _F3
    i = _fast_floor(x + s)
    j = _fast_floor(y + s)
    k = _fast_floor(z + s)

    t = (i + j + k) * _G3
    x0 = x - (i - t)
    y0 = y - (j - t)
    z0 = z - (k - t)

    # Тетраэдр симплекса, в котором лежит точка
    if x0 >= y0:
        if y0 >= z0:
            i1, j1, k1 = 1, 0, 0
            i2, j2, k2 = 1, 1, 0
        elif x0 >= z0:
            i1, j1, k1 = 1, 0, 0
            i2, j2, k2 = 1, 0, 1
        else:
            i1, j1, k1 = 0, 0, 1
            i2, j2, k2 = 1, 0, 1
    else:
        if y0 < z0:
            i1, j1, k1 = 0, 0, 1
            i2, j2, k2 = 0, 1, 1
        elif x0 < z0:
            i1, j1, k1 = 0, 1, 0
            i2, j2, k2 = 0, 1, 1
        else:
            i1, j1, k1 = 0, 1, 0
            i2, j2, k2 = 1, 1, 0

    x1 = x0 - i1 + _G3
    y1 = y0 - j1 + _G3
    z1 = z0 - k1 + _G3
    x2 = x0 - i2 + 2.0 * _G3
    y2 = y0 - j2 + 2.0 * _G3
    z2 = z0 - k2 + 2.0 * _G3
    x3 = x0 - 1.0 + 3.0 * _G3
    y3 = y0 - 1.0 + 3.0 * _G3
    z3 = z0 - 1.0 + 3.0 * _G3

    ii = i & 255
    jj = j & 255
    kk = k & 255

    gi0 = perm[ii + perm[jj + perm[kk]]] % 12
    gi1 = perm[ii + i1 + perm[jj + j1 + perm[kk + k1]]] % 12
    gi2 = perm[ii + i2 + perm[jj + j2 + perm[kk + k2]]] % 12
    gi3 = perm[ii + 1 + perm[jj + 1 + perm[kk + 1]]] % 12

    n0 = 0.0
    t0 = 0.6 - x0 * x0 - y0 * y0 - z0 * z0
    if t0 > 0:
        t0 *= t0
        n0 = t0 * t0 * _dot3(_GRAD3[gi0], x0, y0, z0)

    n1 = 0.0
    t1 = 0.6 - x1 * x1 - y1 * y1 - z1 * z1
    if t1 > 0:
        t1 *= t1
        n1 = t1 * t1 * _dot3(_GRAD3[gi1], x1, y1, z1)

    n2 = 0.0
    t2 = 0.6 - x2 * x2 - y2 * y2 - z2 * z2
    if t2 > 0:
        t2 *= t2
        n2 = t2 * t2 * _dot3(_GRAD3[gi2], x2, y2, z2)

    n3 = 0.0
    t3 = 0.6 - x3 * x3 - y3 * y3 - z3 * z3
    if t3 > 0:
        t3 *= t3
        n3 = t3 * t3 * _dot3(_GRAD3[gi3], x3, y3, z3)

    return 32.0 * (n0 + n1 + n2 + n3)

# ----------------------------------------------------------------------
# Фрактальный шум на сфере
# ----------------------------------------------------------------------

@jit(nopython=True, parallel=True, cache=True)
def spherical_fbm(xs: np.ndarray, ys: np.ndarray, zs: np.ndarray,
                  perm: np.ndarray, offset: np.ndarray,
                  passes: int, strength: float, frequency: float,
                  resistance: float) -> np.ndarray:
    """
    Фрактальный шум (fBm) в точках единичной сферы

    Шум берется в 3D, поэтому текстура не имеет шва по долготе и
    сгущения у полюсов.

    Args:
        xs, ys, zs: Координаты точек сферы (2D массивы одной формы)
        perm: Таблица перестановок
        offset: Сдвиг области шума (3 компоненты)
        passes: Количество октав
        strength: Амплитуда первой октавы
        frequency: Частота первой октавы
        resistance: Множитель амплитуды между октавами

    Returns:
        Несуммированный (ненормализованный) шум, float64
    """
    rows, cols = xs.shape
    result = np.zeros((rows, cols), dtype=np.float64)

    for i in prange(rows):
        for j in range(cols):
            total = 0.0
            amplitude = strength
            freq = frequency
            for octave in range(passes):
                total += amplitude * simplex_noise_3d(
                    xs[i, j] * freq + offset[0] + octave * 1.7,
                    ys[i, j] * freq + offset[1],
                    zs[i, j] * freq + offset[2],
                    perm,
                )
                amplitude *= resistance
                freq *= 2.0
                if amplitude < AMPLITUDE_CUTOFF:
                    break
            result[i, j] = total

    return result


def warm_up() -> None:
    """
    Компиляция spherical_fbm и запуск пула потоков numba в текущем потоке

    Пул потоков parallel-ядер должен быть создан координирующим потоком:
    если первым его запускает фоновый поток, интерпретатор зависает при
    завершении.
    """
    point = np.zeros((1, 1), dtype=np.float64)
    spherical_fbm(point, point, point, permutation_table(0), np.zeros(3),
                  1, 1.0, 1.0, 0.5)
