"""Shared fixtures for planetex tests."""
from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from planetex.buffers import PixelBuffer  # noqa: E402
from planetex.synthesis import SynthesisResult  # noqa: E402
from planetex.worker import SynthesisOutcome  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def quick_synthesize(seed, layers, height, specular, diffuse):
    """Cheap stand-in for noise synthesis: a seed-dependent ramp."""
    size = height.size
    ramp = (np.arange(size, dtype=np.int64)[None, :] * 7 + seed + len(layers)) % 256
    grey = np.broadcast_to(ramp, (size, size)).astype(np.uint8)
    out = np.empty((size, size, 4), dtype=np.uint8)
    out[..., :3] = grey[..., None]
    out[..., 3] = 255
    return SynthesisResult(PixelBuffer(out), specular.copy(), diffuse.copy())


class ManualWorker:
    """Worker double that completes requests only when told to."""

    def __init__(self):
        self.requests = []
        self.outbox = []
        self.stopped = False

    def submit(self, request):
        self.requests.append(request)

    def drain(self):
        outbox, self.outbox = self.outbox, []
        return outbox

    def stop(self, timeout: float = 5.0):
        self.stopped = True

    def complete(self, request=None):
        request = request or self.requests[-1]
        result = quick_synthesize(request.seed, request.layers, request.height,
                                  request.specular, request.diffuse)
        self.outbox.append(SynthesisOutcome(request.generation, request.tier, result=result))

    def fail(self, error, request=None):
        request = request or self.requests[-1]
        self.outbox.append(SynthesisOutcome(request.generation, request.tier, error=error))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manual_worker():
    return ManualWorker()
