"""planetex public API."""

from .atmosphere import AtmosphereColor, build_atmosphere_material
from .buffers import PixelBuffer, ReferenceImage, prepare_base_buffers
from .config import (
    NoiseLayer,
    PlanetOptions,
    PipelineSettings,
    build_noise_layers,
    validate_noise_configuration,
)
from .disposal import DisposalScheduler
from .errors import (
    PlanetexError,
    ConfigurationError,
    SynthesisError,
    AssetUnavailableError,
    BufferDetachedError,
)
from .gradient import ColorStop, generate_gradient
from .materials import DynamicTexture, Material, TextureSlots
from .normal_map import derive_normal_map
from .pipeline import PipelineState, ProgressiveTextureManager, StageEvent, TextureSet
from .seeding import hash_string_to_int
from .synthesis import SynthesisResult, synthesize
from .worker import SynthesisWorker

__all__ = [
    "AtmosphereColor",
    "build_atmosphere_material",
    "PixelBuffer",
    "ReferenceImage",
    "prepare_base_buffers",
    "NoiseLayer",
    "PlanetOptions",
    "PipelineSettings",
    "build_noise_layers",
    "validate_noise_configuration",
    "DisposalScheduler",
    "PlanetexError",
    "ConfigurationError",
    "SynthesisError",
    "AssetUnavailableError",
    "BufferDetachedError",
    "ColorStop",
    "generate_gradient",
    "DynamicTexture",
    "Material",
    "TextureSlots",
    "derive_normal_map",
    "PipelineState",
    "ProgressiveTextureManager",
    "StageEvent",
    "TextureSet",
    "hash_string_to_int",
    "SynthesisResult",
    "synthesize",
    "SynthesisWorker",
]

__version__ = "0.1.0"
