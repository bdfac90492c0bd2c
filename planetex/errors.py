# planetex/errors.py
"""
Иерархия исключений конвейера планетарных текстур
"""


class PlanetexError(Exception):
    """Базовое исключение planetex"""


class ConfigurationError(PlanetexError, ValueError):
    """Некорректные параметры планеты, слоев шума или конвейера"""


class SynthesisError(PlanetexError, RuntimeError):
    """Сбой синтеза текстур в фоновом потоке"""

    def __init__(self, message: str, tier: int = None):
        super().__init__(message)
        self.tier = tier


class AssetUnavailableError(PlanetexError, RuntimeError):
    """Статический ресурс (эталонное изображение высот) недоступен"""


class BufferDetachedError(PlanetexError, RuntimeError):
    """Обращение к буферу, который был передан другому владельцу или освобожден"""
