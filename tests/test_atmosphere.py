"""Tests for the atmosphere material."""

import pytest

from planetex.atmosphere import (
    ATMOSPHERE_TEXTURE,
    CLOUDS_TEXTURE,
    AtmosphereColor,
    build_atmosphere_material,
)
from planetex.config import PlanetOptions
from planetex.errors import ConfigurationError
from planetex.materials import AlphaMode, CoordinatesMode


def _material(density=1.0, color="blue"):
    return build_atmosphere_material(
        PlanetOptions(atmosphere_density=density, atmosphere_color=color), "planetTexture")


def test_static_textures_and_constants():
    material = _material()
    assert material.name == "planetTextureAtmosphere"
    assert material.reflection_texture.path == ATMOSPHERE_TEXTURE
    assert material.reflection_texture.coordinates_mode is CoordinatesMode.SPHERICAL
    assert material.diffuse_texture.path == CLOUDS_TEXTURE
    assert material.diffuse_texture.level == 1.0
    assert material.alpha == pytest.approx(0.3)
    assert material.specular_power == 2.5
    assert material.z_offset == -5.0
    assert material.specular_color == AtmosphereColor.BLUE.rgb


@pytest.mark.parametrize("color", list(AtmosphereColor))
def test_every_color_builds(color):
    material = _material(color=color)
    assert material.alpha_mode is AlphaMode.ADD


@pytest.mark.parametrize("color, density, mode", [
    ("orange", 1.5, AlphaMode.MAXIMIZED),
    ("green", 2.0, AlphaMode.MAXIMIZED),
    ("orange", 1.0, AlphaMode.ADD),
    ("blue", 3.0, AlphaMode.ADD),
    ("purple", 2.0, AlphaMode.ADD),
])
def test_alpha_mode(color, density, mode):
    assert _material(density, color).alpha_mode is mode


def test_cloud_level_is_capped():
    assert _material(density=2.0).diffuse_texture.level == 1.2
    assert _material(density=0.5).diffuse_texture.level == 0.5


def test_green_tints_diffuse():
    material = _material(color="green")
    assert material.diffuse_color == pytest.approx(tuple(c * 1.7 for c in AtmosphereColor.GREEN.rgb))


def test_dense_atmosphere_boosts_specular():
    material = _material(density=3.0, color="white")
    assert material.specular_color == pytest.approx(tuple(c * 1.7 for c in AtmosphereColor.WHITE.rgb))
    assert material.alpha == pytest.approx(0.6)


def test_parse():
    assert AtmosphereColor.parse(" Purple ") is AtmosphereColor.PURPLE
    assert AtmosphereColor.parse(AtmosphereColor.GREEN) is AtmosphereColor.GREEN
    with pytest.raises(ConfigurationError):
        AtmosphereColor.parse("teal")
