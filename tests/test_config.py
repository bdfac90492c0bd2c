"""Tests for planet options, noise layers and pipeline settings."""

import math

import pytest

from planetex.atmosphere import AtmosphereColor
from planetex.config import (
    NoiseLayer,
    PipelineSettings,
    PlanetOptions,
    build_noise_layers,
    parse_tiers,
    validate_noise_configuration,
)
from planetex.errors import ConfigurationError


@pytest.mark.parametrize("roughness, count", [(0, 1), (1, 2), (2, 3), (3, 3)])
def test_layer_count_follows_roughness(roughness, count):
    layers = build_noise_layers(PlanetOptions(terrain_seed="abc", roughness=roughness))
    assert len(layers) == count


def test_base_layer_is_last_and_uses_options():
    options = PlanetOptions(terrain_seed="abc", roughness=2, land_mass_size=10, sea_level=40)
    layers = build_noise_layers(options)
    base = layers[-1]
    assert base.shift == 5
    assert base.passes == 14
    assert math.isclose(base.roughness, 2.1 - 10 * 0.02)
    assert all(math.isclose(layer.minimum, 0.4) for layer in layers)
    assert layers[0].passes == 10
    assert layers[1].shift == 18


@pytest.mark.parametrize("field, value", [
    ("passes", 0),
    ("passes", 2.5),
    ("passes", True),
    ("roughness", 0.0),
    ("resistance", 1.5),
    ("resistance", 0.0),
    ("strength", -0.1),
    ("shift", float("nan")),
    ("minimum", "low"),
])
def test_invalid_layer_fields_are_rejected(field, value):
    kwargs = {"shift": 1, "passes": 3, "strength": 0.5, "roughness": 1.0,
              "resistance": 0.5, "minimum": 0.0, "hard_clamp": True}
    kwargs[field] = value
    with pytest.raises(ConfigurationError):
        NoiseLayer(**kwargs)


def test_validate_accepts_dicts_with_short_keys():
    layers = validate_noise_configuration([
        {"shift": 5, "passes": 14, "strength": 0.65, "roughness": 2.1,
         "resistance": 0.6, "min": 0.1, "hard": False},
    ])
    assert layers == (NoiseLayer(5, 14, 0.65, 2.1, 0.6, 0.1, False),)


def test_validate_rejects_empty_configuration():
    with pytest.raises(ConfigurationError):
        validate_noise_configuration([])


def test_validate_rejects_missing_fields():
    with pytest.raises(ConfigurationError):
        validate_noise_configuration([{"shift": 1, "passes": 2}])


def test_options_from_camel_case_dict():
    options = PlanetOptions.from_dict({
        "terrainSeed": "abc",
        "roughness": 1,
        "seaLevel": 0,
        "landMassSize": 0,
        "atmosphereColor": "orange",
    })
    assert options.terrain_seed == "abc"
    assert options.atmosphere_color is AtmosphereColor.ORANGE


@pytest.mark.parametrize("kwargs", [
    {"roughness": 4},
    {"roughness": -1},
    {"atmosphere_density": -1.0},
    {"atmosphere_color": "pink"},
    {"terrain_seed": 42},
])
def test_invalid_options_are_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        PlanetOptions(**kwargs)


def test_unknown_option_key():
    with pytest.raises(ConfigurationError):
        PlanetOptions.from_dict({"terrainSeed": "abc", "gravity": 9.8})


def test_settings_defaults():
    settings = PipelineSettings()
    assert settings.tiers == (256, 512, 1024)
    assert settings.texture_grace_delay == 2.0
    assert settings.bump_level(0, 3) == 0.2
    assert settings.bump_level(1, 1) == 0.45
    assert settings.bump_level(2, 0) == 0.05


@pytest.mark.parametrize("tiers", [(), (256, 256), (512, 256), (0, 16), (16.0, 32)])
def test_invalid_tiers(tiers):
    with pytest.raises(ConfigurationError):
        PipelineSettings(tiers=tiers)


def test_parse_tiers():
    assert parse_tiers("16, 32,64") == (16, 32, 64)
    with pytest.raises(ConfigurationError):
        parse_tiers("16,big")
