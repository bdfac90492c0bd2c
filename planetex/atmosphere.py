# planetex/atmosphere.py
"""
Материал атмосферы: статические текстуры, параметры из настроек планеты
"""

from enum import Enum
from typing import Union

from .errors import ConfigurationError
from .materials import AlphaMode, Color3, CoordinatesMode, Material, StaticTexture

ATMOSPHERE_TEXTURE = "assets/textures/atmosphere.png"
CLOUDS_TEXTURE = "assets/textures/planetClouds1.jpg"


class AtmosphereColor(Enum):
    """Палитра атмосферы; значение - цвет бликов (RGB, 0..1)"""
    BLUE = (0.1, 0.3, 0.5)
    ORANGE = (0.5, 0.4, 0.2)
    WHITE = (0.3, 0.3, 0.4)
    GREEN = (0.2, 0.3, 0.17)
    PURPLE = (0.45, 0.2, 0.45)

    @property
    def rgb(self) -> Color3:
        return self.value

    @classmethod
    def parse(cls, value: Union["AtmosphereColor", str]) -> "AtmosphereColor":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                pass
        names = ", ".join(color.name.lower() for color in cls)
        raise ConfigurationError(f"unknown atmosphere color {value!r}; expected one of {names}")


def _scale(color: Color3, factor: float) -> Color3:
    return tuple(channel * factor for channel in color)


def build_atmosphere_material(options, name: str = "planetTexture") -> Material:
    """
    Материал атмосферы - чистая функция плотности и цвета атмосферы

    Args:
        options: Настройки планеты (atmosphere_density, atmosphere_color)
        name: Имя материала поверхности; к нему добавляется 'Atmosphere'
    """
    density = options.atmosphere_density
    color = AtmosphereColor.parse(options.atmosphere_color)

    material = Material(f"{name}Atmosphere")
    material.reflection_texture = StaticTexture(
        ATMOSPHERE_TEXTURE, coordinates_mode=CoordinatesMode.SPHERICAL)
    material.diffuse_texture = StaticTexture(CLOUDS_TEXTURE, level=min(density, 1.2))
    material.alpha = (density + 1) * 0.15
    if density > 1 and color in (AtmosphereColor.ORANGE, AtmosphereColor.GREEN):
        material.alpha_mode = AlphaMode.MAXIMIZED
    else:
        material.alpha_mode = AlphaMode.ADD
    material.specular_power = 2.5
    material.z_offset = -5.0
    material.specular_color = color.rgb
    if color is AtmosphereColor.GREEN:
        material.diffuse_color = _scale(material.specular_color, 1.7)
    if density >= 3:
        material.specular_color = _scale(material.specular_color, 1.7)
    return material
