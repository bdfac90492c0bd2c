"""Helpers for writing finished texture maps to disk."""

from __future__ import annotations

from pathlib import Path
from typing import Dict

import numpy as np

MAP_NAMES = ("height", "specular", "diffuse", "normal")
FORMATS = ("ppm", "png")


def rgb_view(image: np.ndarray) -> np.ndarray:
    """Drop alpha from an RGBA map; grey maps are expanded to three channels."""
    if image.ndim == 2:
        return np.stack([image] * 3, axis=-1)
    if image.ndim == 3 and image.shape[2] in (3, 4):
        return image[..., :3]
    raise ValueError(f"Cannot show an image of shape {image.shape} as RGB.")


def _as_bytes(image: np.ndarray) -> np.ndarray:
    if image.dtype == np.uint8:
        return image
    scaled = np.clip(image.astype(np.float32), 0.0, 1.0) * 255.0
    return np.round(scaled).astype(np.uint8)


def save_ppm(image: np.ndarray, path: Path) -> None:
    """Write a binary PPM (P6); alpha is discarded."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pixels = np.ascontiguousarray(_as_bytes(rgb_view(image)))
    rows, cols = pixels.shape[:2]
    with path.open("wb") as handle:
        handle.write(b"P6\n%d %d\n255\n" % (cols, rows))
        handle.write(pixels.tobytes())


def save_png(image: np.ndarray, path: Path) -> bool:
    """Write an RGBA PNG through imageio; returns False when imageio is missing."""
    try:
        import imageio
    except ImportError:
        print("imageio is not available; skipping png export.")
        return False
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    write = imageio.v3.imwrite if hasattr(imageio, "v3") else imageio.imwrite
    write(path, _as_bytes(image))
    return True


def save_texture_set(texture_set, directory: Path, prefix: str = "planet",
                     fmt: str = "ppm") -> Dict[str, Path]:
    """Write the four maps of a texture set; returns the written paths."""
    if fmt not in FORMATS:
        raise ValueError(f"Unsupported format '{fmt}', expected one of {FORMATS}.")
    written = {}
    for name in MAP_NAMES:
        pixels = getattr(texture_set, name).buffer.data
        path = Path(directory) / f"{prefix}_{name}_{texture_set.tier}.{fmt}"
        if fmt == "ppm":
            save_ppm(pixels, path)
        elif not save_png(pixels, path):
            continue
        written[name] = path
    return written
