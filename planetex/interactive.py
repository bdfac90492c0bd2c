"""Live preview of progressive texture refinement."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .export import MAP_NAMES, rgb_view
from .pipeline import ProgressiveTextureManager

BLANK_GREY = 96


def add_interactive_args(parser) -> None:
    group = parser.add_argument_group("preview")
    group.add_argument("--interactive", action="store_true",
                       help="Show the maps refining in a window")
    group.add_argument("--scale", type=float, default=0.5,
                       help="Window size as a fraction of the smaller screen side")
    group.add_argument("--fps", type=float, default=30.0, help="Preview refresh rate")
    group.add_argument("--channel", choices=MAP_NAMES, default="diffuse",
                       help="Map shown in the preview")


def resize_nearest(image: np.ndarray, out_w: int, out_h: int) -> np.ndarray:
    """Nearest-neighbour resize to exactly out_h x out_w."""
    in_h, in_w = image.shape[:2]
    if (in_h, in_w) == (out_h, out_w):
        return image
    rows = np.arange(out_h) * in_h // out_h
    cols = np.arange(out_w) * in_w // out_w
    return image[rows[:, None], cols[None, :]]


def get_screen_size(default: Tuple[int, int] = (1920, 1080)) -> Tuple[int, int]:
    try:
        import tkinter
        probe = tkinter.Tk()
        probe.withdraw()
        size = probe.winfo_screenwidth(), probe.winfo_screenheight()
        probe.destroy()
    except Exception:
        return default
    return int(size[0]), int(size[1])


@dataclass
class InteractiveConfig:
    title: str = "planetex"
    target_fps: float = 30.0
    scale: float = 0.5
    channel: str = "diffuse"
    size: Optional[int] = None

    @classmethod
    def from_args(cls, args, title: Optional[str] = None) -> "InteractiveConfig":
        return cls(
            title=title or cls.title,
            target_fps=max(1.0, args.fps),
            scale=max(0.1, args.scale),
            channel=args.channel,
        )


def preview_frame(manager: ProgressiveTextureManager, channel: str, size: int) -> np.ndarray:
    """Current best map, upscaled to the display size; grey before the first commit."""
    live = manager.live_textures
    if live is None:
        return np.full((size, size, 3), BLANK_GREY, dtype=np.uint8)
    return resize_nearest(rgb_view(getattr(live, channel).buffer.data), size, size)


def run_preview(manager: ProgressiveTextureManager, config: InteractiveConfig) -> None:
    try:
        import matplotlib.pyplot as plt
        from matplotlib.animation import FuncAnimation
    except ImportError:
        print("matplotlib is not available; cannot display interactive output.")
        return

    if config.size:
        size = config.size
    else:
        size = int(min(get_screen_size()) * config.scale)
    size = max(manager.settings.tiers[-1] // 4, size)

    fig, ax = plt.subplots()
    fig.set_size_inches(size / fig.dpi, size / fig.dpi)
    fig.subplots_adjust(left=0, right=1, top=0.94, bottom=0)
    ax.set_axis_off()

    manager.ensure_started()
    image = ax.imshow(preview_frame(manager, config.channel, size))
    title = ax.set_title(config.title)

    def refresh(_frame):
        manager.poll()
        image.set_data(preview_frame(manager, config.channel, size))
        live = manager.live_textures
        tier = f"{live.tier}px" if live is not None else "wireframe"
        title.set_text(f"{config.title}: {tier} ({manager.state.value})")
        return image, title

    # keep a reference, matplotlib drops unreferenced animations
    animation = FuncAnimation(fig, refresh, frames=itertools.count(),
                              interval=1000.0 / config.target_fps,
                              cache_frame_data=False)
    plt.show(block=True)
