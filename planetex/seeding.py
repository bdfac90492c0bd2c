# planetex/seeding.py
"""
Детерминированное получение seed из строкового идентификатора ландшафта
"""

from typing import Iterator

_UINT32_MASK = 0xFFFFFFFF


def _to_int32(value: int) -> int:
    """Приведение к знаковому 32-битному целому (дополнительный код)"""
    value &= _UINT32_MASK
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_code_units(text: str) -> Iterator[int]:
    """Кодовые единицы UTF-16; символы вне BMP дают суррогатную пару"""
    for char in text:
        code = ord(char)
        if code > 0xFFFF:
            code -= 0x10000
            yield 0xD800 + (code >> 10)
            yield 0xDC00 + (code & 0x3FF)
        else:
            yield code


def hash_string_to_int(seed: str) -> int:
    """
    Полиномиальный хеш строки: a = (a << 5) - a + code_unit

    Переполнение на каждом шаге сворачивается в знаковый int32, поэтому
    результат совпадает побитно с реализациями на 32-битной арифметике.

    Args:
        seed: Идентификатор ландшафта

    Returns:
        Целое в диапазоне [-2**31, 2**31 - 1]; для пустой строки 0
    """
    acc = 0
    for unit in _utf16_code_units(seed):
        acc = _to_int32((acc << 5) - acc + unit)
    return acc


def unsigned_seed(seed: int) -> int:
    """Беззнаковое представление int32 seed (для numpy.random.RandomState)"""
    return seed & _UINT32_MASK
