"""CLI for generating planet texture maps."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .atmosphere import AtmosphereColor
from .buffers import ReferenceImage
from .config import PipelineSettings, PlanetOptions, parse_tiers
from .errors import PlanetexError
from .export import save_texture_set
from .interactive import InteractiveConfig, add_interactive_args, run_preview
from .pipeline import PipelineState, ProgressiveTextureManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Progressive planet texture generator")
    parser.add_argument("--seed", default="planet", help="Terrain seed string")
    parser.add_argument("--roughness", type=int, choices=(0, 1, 2, 3), default=1)
    parser.add_argument("--sea-level", type=float, default=0.0)
    parser.add_argument("--land-mass-size", type=float, default=0.0)
    parser.add_argument("--atmosphere-density", type=float, default=1.0)
    parser.add_argument("--atmosphere-color", default="blue",
                        choices=[color.name.lower() for color in AtmosphereColor])
    parser.add_argument("--tiers", default="256,512,1024",
                        help="Comma separated resolution tiers")
    parser.add_argument("--reference", type=Path, default=None,
                        help="Height reference image (sphere normal map)")
    parser.add_argument("--output", "-o", type=Path, default=Path("planet_textures"))
    parser.add_argument("--format", choices=("ppm", "png"), default="ppm")
    parser.add_argument("--all-tiers", action="store_true",
                        help="Write the maps of every tier, not only the final one")
    parser.add_argument("--timeout", type=float, default=600.0)
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    add_interactive_args(parser)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        options = PlanetOptions(
            terrain_seed=args.seed,
            land_mass_size=args.land_mass_size,
            sea_level=args.sea_level,
            roughness=args.roughness,
            atmosphere_density=args.atmosphere_density,
            atmosphere_color=args.atmosphere_color,
        )
        settings = PipelineSettings(tiers=parse_tiers(args.tiers))
    except PlanetexError as e:
        print(f"Invalid configuration: {e}")
        return 2

    reference = ReferenceImage.from_file(args.reference) if args.reference else None
    manager = ProgressiveTextureManager(options, settings=settings, reference=reference)
    try:
        if args.interactive:
            run_preview(manager, InteractiveConfig.from_args(args, title=f"planet {args.seed}"))
            state = manager.state
        else:
            state = _run_to_completion(manager, args)
    except PlanetexError as e:
        print(f"Error: {e}")
        return 1
    finally:
        manager.close()

    if state is not PipelineState.SETTLED:
        print(f"Pipeline stopped in state '{state.value}'.")
        return 1
    return 0


def _run_to_completion(manager: ProgressiveTextureManager, args) -> PipelineState:
    manager.ensure_started()
    final_tier = manager.settings.tiers[-1]
    deadline = time.monotonic() + args.timeout
    while manager.state not in (PipelineState.SETTLED, PipelineState.HALTED):
        for event in manager.poll():
            if event.kind != "committed":
                continue
            if args.all_tiers or event.tier == final_tier:
                written = save_texture_set(event.textures, args.output, fmt=args.format)
                for name, path in written.items():
                    print(f"Saved {name} map ({event.tier}x{event.tier}) to {path}")
        if time.monotonic() >= deadline:
            print(f"Timed out after {args.timeout:.0f}s.")
            break
        time.sleep(0.05)
    return manager.state


if __name__ == "__main__":
    sys.exit(main())
