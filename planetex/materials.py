# planetex/materials.py
"""
Минимальная модель материалов и текстур движка рендеринга

Материал хранит ссылки на текстуры в неизменяемом наборе слотов
TextureSlots; замена набора - одно присваивание атрибута, поэтому
рендерер никогда не видит слоты разных уровней одновременно.
"""

from enum import Enum
from typing import NamedTuple, Optional, Tuple

from .buffers import PixelBuffer

Color3 = Tuple[float, float, float]


class AlphaMode(Enum):
    ADD = "add"
    MAXIMIZED = "maximized"


class CoordinatesMode(Enum):
    EXPLICIT = "explicit"
    SPHERICAL = "spherical"


class DynamicTexture:
    """Текстура, построенная из пиксельного буфера"""

    def __init__(self, name: str, buffer: PixelBuffer, level: float = 1.0):
        self.name = name
        self.buffer = buffer
        self.level = level
        self.disposed = False

    @property
    def size(self) -> int:
        return self.buffer.size

    def dispose(self) -> None:
        if not self.disposed:
            self.buffer.release()
            self.disposed = True

    def __repr__(self) -> str:
        state = "disposed" if self.disposed else f"{self.buffer.size}px"
        return f"DynamicTexture({self.name!r}, {state})"


class StaticTexture:
    """Текстура из статического файла ресурсов"""

    def __init__(self, path: str, level: float = 1.0,
                 coordinates_mode: CoordinatesMode = CoordinatesMode.EXPLICIT):
        self.path = path
        self.level = level
        self.coordinates_mode = coordinates_mode
        self.disposed = False

    def dispose(self) -> None:
        self.disposed = True

    def __repr__(self) -> str:
        return f"StaticTexture({self.path!r})"


class TextureSlots(NamedTuple):
    """Текстуры, привязанные к материалу; tier - уровень, из которого они"""
    diffuse: Optional[DynamicTexture] = None
    specular: Optional[DynamicTexture] = None
    bump: Optional[DynamicTexture] = None
    tier: Optional[int] = None

    def textures(self):
        return [texture for texture in (self.diffuse, self.specular, self.bump)
                if texture is not None]


class Material:
    """Материал со слотами текстур и параметрами освещения"""

    def __init__(self, name: str):
        self.name = name
        self.wireframe = False
        self.slots = TextureSlots()
        self.specular_color: Color3 = (1.0, 1.0, 1.0)
        self.diffuse_color: Color3 = (1.0, 1.0, 1.0)
        self.specular_power = 64.0
        self.alpha = 1.0
        self.alpha_mode = AlphaMode.ADD
        self.z_offset = 0.0
        self.diffuse_texture: Optional[StaticTexture] = None
        self.reflection_texture: Optional[StaticTexture] = None
        self.disposed = False

    def bind(self, slots: TextureSlots) -> TextureSlots:
        """Атомарная замена набора текстур; возвращает предыдущий набор"""
        previous = self.slots
        self.slots = slots
        return previous

    def dispose(self, force_textures: bool = True) -> None:
        if self.disposed:
            return
        if force_textures:
            for texture in self.slots.textures():
                texture.dispose()
            for texture in (self.diffuse_texture, self.reflection_texture):
                if texture is not None:
                    texture.dispose()
        self.disposed = True

    def __repr__(self) -> str:
        return f"Material({self.name!r}, tier={self.slots.tier})"
