"""Tests for the command line entry point and map export."""

import subprocess
import sys

import numpy as np

from conftest import ROOT, FakeClock, ManualWorker
from planetex.cli import build_parser, main
from planetex.config import PipelineSettings, PlanetOptions
from planetex.export import save_ppm, save_texture_set
from planetex.interactive import preview_frame, resize_nearest
from planetex.pipeline import ProgressiveTextureManager


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.seed == "planet"
    assert args.roughness == 1
    assert args.tiers == "256,512,1024"
    assert args.format == "ppm"
    assert not args.interactive


def test_main_writes_final_tier(tmp_path):
    code = main(["--seed", "abc", "--tiers", "16,32", "--output", str(tmp_path),
                 "--timeout", "120"])
    assert code == 0
    for name in ("height", "specular", "diffuse", "normal"):
        path = tmp_path / f"planet_{name}_32.ppm"
        assert path.exists()
        assert path.read_bytes().startswith(b"P6\n32 32\n255\n")
        assert not (tmp_path / f"planet_{name}_16.ppm").exists()


def test_main_writes_all_tiers(tmp_path):
    code = main(["--seed", "abc", "--roughness", "0", "--tiers", "8,16",
                 "--output", str(tmp_path), "--all-tiers", "--timeout", "120"])
    assert code == 0
    assert (tmp_path / "planet_diffuse_8.ppm").exists()
    assert (tmp_path / "planet_diffuse_16.ppm").exists()


def test_main_rejects_invalid_configuration(tmp_path, capsys):
    assert main(["--tiers", "32,16", "--output", str(tmp_path)]) == 2
    assert main(["--atmosphere-density", "-1", "--output", str(tmp_path)]) == 2
    assert "Invalid configuration" in capsys.readouterr().out
    assert list(tmp_path.iterdir()) == []


def test_save_ppm_drops_alpha(tmp_path):
    image = np.zeros((2, 3, 4), dtype=np.uint8)
    image[..., 0] = 7
    path = tmp_path / "nested" / "image.ppm"
    save_ppm(image, path)
    data = path.read_bytes()
    header = b"P6\n3 2\n255\n"
    assert data.startswith(header)
    assert len(data) == len(header) + 2 * 3 * 3
    assert data[len(header)] == 7


def _committed_manager():
    worker = ManualWorker()
    manager = ProgressiveTextureManager(PlanetOptions(terrain_seed="abc"),
                                        settings=PipelineSettings(tiers=(8, 16)),
                                        worker=worker, clock=FakeClock())
    manager.request_material()
    worker.complete()
    manager.poll()
    return manager


def test_save_texture_set(tmp_path):
    manager = _committed_manager()
    written = save_texture_set(manager.live_textures, tmp_path, prefix="abc")
    assert sorted(written) == ["diffuse", "height", "normal", "specular"]
    assert written["normal"] == tmp_path / "abc_normal_8.ppm"
    assert all(path.exists() for path in written.values())


def test_preview_frame():
    worker = ManualWorker()
    manager = ProgressiveTextureManager(PlanetOptions(), settings=PipelineSettings(tiers=(8,)),
                                        worker=worker, clock=FakeClock())
    blank = preview_frame(manager, "diffuse", 20)
    assert blank.shape == (20, 20, 3)
    assert np.all(blank == 96)

    manager = _committed_manager()
    frame = preview_frame(manager, "normal", 20)
    assert frame.shape == (20, 20, 3)


def test_resize_nearest_exact_size():
    image = np.arange(4 * 4 * 3, dtype=np.uint8).reshape(4, 4, 3)
    resized = resize_nearest(image, 10, 6)
    assert resized.shape == (6, 10, 3)
    np.testing.assert_array_equal(resized[0, 0], image[0, 0])
    np.testing.assert_array_equal(resized[-1, -1], image[-1, -1])
    assert resize_nearest(image[..., 0], 8, 8).shape == (8, 8)


def test_cli_process_exits_after_writing(tmp_path):
    completed = subprocess.run(
        [sys.executable, "-m", "planetex.cli", "--seed", "abc", "--tiers", "8,16",
         "--output", str(tmp_path)],
        cwd=str(ROOT), capture_output=True, text=True, timeout=300,
    )
    assert completed.returncode == 0, completed.stderr
    assert (tmp_path / "planet_diffuse_16.ppm").exists()
