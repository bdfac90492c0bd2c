# planetex/config.py
"""
Параметры планеты, слоев шума и конвейера прогрессивной генерации текстур
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Sequence, Tuple, Union

from .atmosphere import AtmosphereColor
from .errors import ConfigurationError

ROUGHNESS_LEVELS = (0, 1, 2, 3)


def _require_finite(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from None
    if not math.isfinite(number):
        raise ConfigurationError(f"{name} must be finite, got {value!r}")
    return number


@dataclass(frozen=True)
class NoiseLayer:
    """Параметры одного слоя (набора октав) процедурного шума высот"""
    shift: float = 0.0
    passes: int = 1            # Количество октав
    strength: float = 1.0      # Начальная амплитуда слоя
    roughness: float = 1.0     # Начальная частота
    resistance: float = 0.5    # Затухание амплитуды между октавами
    minimum: float = 0.0       # Уровень "моря" для слоя, [0, 1]
    hard_clamp: bool = True

    def __post_init__(self):
        if isinstance(self.passes, bool) or not isinstance(self.passes, int):
            raise ConfigurationError(f"passes must be an integer, got {self.passes!r}")
        if self.passes <= 0:
            raise ConfigurationError(f"passes must be positive, got {self.passes}")
        for name in ("shift", "strength", "roughness", "resistance", "minimum"):
            object.__setattr__(self, name, _require_finite(name, getattr(self, name)))
        if self.strength < 0:
            raise ConfigurationError(f"strength must be >= 0, got {self.strength}")
        if self.roughness <= 0:
            raise ConfigurationError(f"roughness must be > 0, got {self.roughness}")
        if not 0 < self.resistance <= 1:
            raise ConfigurationError(f"resistance must be in (0, 1], got {self.resistance}")
        if not isinstance(self.hard_clamp, bool):
            raise ConfigurationError(f"hard_clamp must be a bool, got {self.hard_clamp!r}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NoiseLayer":
        """Создание слоя из словаря (поддерживаются ключи min/hard)"""
        try:
            return cls(
                shift=data["shift"],
                passes=data["passes"],
                strength=data["strength"],
                roughness=data["roughness"],
                resistance=data["resistance"],
                minimum=data.get("minimum", data.get("min", 0.0)),
                hard_clamp=data.get("hard_clamp", data.get("hard", True)),
            )
        except KeyError as e:
            raise ConfigurationError(f"noise layer is missing field {e.args[0]!r}") from None


NoiseConfiguration = Tuple[NoiseLayer, ...]


def validate_noise_configuration(
        layers: Iterable[Union[NoiseLayer, Mapping[str, Any]]]) -> NoiseConfiguration:
    """
    Проверка и нормализация набора слоев шума

    Returns:
        Кортеж NoiseLayer (не пустой)

    Raises:
        ConfigurationError: пустой набор или некорректный слой
    """
    if isinstance(layers, (str, bytes)) or isinstance(layers, Mapping):
        raise ConfigurationError("noise configuration must be a sequence of layers")
    result = []
    for layer in layers:
        if isinstance(layer, NoiseLayer):
            result.append(layer)
        elif isinstance(layer, Mapping):
            result.append(NoiseLayer.from_dict(layer))
        else:
            raise ConfigurationError(f"unsupported noise layer {layer!r}")
    if not result:
        raise ConfigurationError("noise configuration needs at least one layer")
    return tuple(result)


@dataclass
class PlanetOptions:
    """Параметры планеты, доступные вызывающему коду"""
    terrain_seed: str = "planet"
    land_mass_size: float = 0.0
    sea_level: float = 0.0
    roughness: int = 1              # 0..3, количество дополнительных слоев
    atmosphere_density: float = 1.0
    atmosphere_color: AtmosphereColor = AtmosphereColor.BLUE

    def __post_init__(self):
        if not isinstance(self.terrain_seed, str):
            raise ConfigurationError(f"terrain_seed must be a string, got {self.terrain_seed!r}")
        self.land_mass_size = _require_finite("land_mass_size", self.land_mass_size)
        self.sea_level = _require_finite("sea_level", self.sea_level)
        self.atmosphere_density = _require_finite("atmosphere_density", self.atmosphere_density)
        if self.atmosphere_density < 0:
            raise ConfigurationError(
                f"atmosphere_density must be >= 0, got {self.atmosphere_density}")
        if isinstance(self.roughness, bool) or self.roughness not in ROUGHNESS_LEVELS:
            raise ConfigurationError(
                f"roughness must be one of {ROUGHNESS_LEVELS}, got {self.roughness!r}")
        self.roughness = int(self.roughness)
        self.atmosphere_color = AtmosphereColor.parse(self.atmosphere_color)

    _ALIASES = {
        "terrainSeed": "terrain_seed",
        "landMassSize": "land_mass_size",
        "seaLevel": "sea_level",
        "atmosphereDensity": "atmosphere_density",
        "atmosphereColor": "atmosphere_color",
    }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlanetOptions":
        """Создание из словаря; принимает и camelCase ключи"""
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = cls._ALIASES.get(key, key)
            if name not in cls.__dataclass_fields__:
                raise ConfigurationError(f"unknown planet option {key!r}")
            kwargs[name] = value
        return cls(**kwargs)


def build_noise_layers(options: PlanetOptions) -> NoiseConfiguration:
    """
    Набор слоев шума для планеты

    Базовый слой есть всегда; roughness >= 1 добавляет слой мелкого рельефа,
    roughness >= 2 добавляет еще один, более сильный слой.
    """
    minimum = options.sea_level * 0.01
    layers = [
        NoiseLayer(shift=5, passes=14, strength=0.65,
                   roughness=2.1 - options.land_mass_size * 0.02,
                   resistance=0.6, minimum=minimum, hard_clamp=True),
    ]
    if options.roughness >= 1:
        layers.insert(0, NoiseLayer(shift=18, passes=15, strength=0.45, roughness=0.3,
                                    resistance=0.65, minimum=minimum, hard_clamp=True))
    if options.roughness >= 2:
        layers.insert(0, NoiseLayer(shift=0, passes=10, strength=0.8, roughness=0.6,
                                    resistance=0.70, minimum=minimum, hard_clamp=True))
    return tuple(layers)


@dataclass(frozen=True)
class PipelineSettings:
    """Параметры конвейера: уровни разрешения и задержки освобождения"""
    tiers: Tuple[int, ...] = (256, 512, 1024)
    texture_grace_delay: float = 2.0    # Секунды между заменой и освобождением текстур
    material_grace_delay: float = 2.0   # Для материала при смене настроек шума
    teardown_grace_delay: float = 5.0   # Для материала при dispose()
    gradient_strip: Tuple[int, int] = (256, 5)
    first_bump_level: float = 0.2
    rough_bump_level: float = 0.45
    smooth_bump_level: float = 0.05

    def __post_init__(self):
        tiers = tuple(self.tiers)
        if not tiers:
            raise ConfigurationError("at least one resolution tier is required")
        for tier in tiers:
            if isinstance(tier, bool) or not isinstance(tier, int) or tier <= 0:
                raise ConfigurationError(f"tier resolution must be a positive integer, got {tier!r}")
        if any(b <= a for a, b in zip(tiers, tiers[1:])):
            raise ConfigurationError(f"tiers must be strictly increasing, got {tiers}")
        object.__setattr__(self, "tiers", tiers)
        for name in ("texture_grace_delay", "material_grace_delay", "teardown_grace_delay"):
            if _require_finite(name, getattr(self, name)) < 0:
                raise ConfigurationError(f"{name} must be >= 0")
        width, rows = self.gradient_strip
        if width < 2 or rows < 1:
            raise ConfigurationError(f"invalid gradient strip {self.gradient_strip}")

    def bump_level(self, tier_index: int, roughness: int) -> float:
        """Сила карты нормалей: мягкая на первом уровне, сильнее дальше"""
        if tier_index == 0:
            return self.first_bump_level
        return self.rough_bump_level if roughness > 0 else self.smooth_bump_level


def parse_tiers(value: Union[str, Sequence[int]]) -> Tuple[int, ...]:
    """Разбор списка уровней из строки вида '256,512,1024'"""
    if isinstance(value, str):
        try:
            return tuple(int(part) for part in value.split(",") if part.strip())
        except ValueError:
            raise ConfigurationError(f"invalid tier list {value!r}") from None
    return tuple(value)
