"""Tests for the background synthesis worker."""

import threading
import time

import pytest

from conftest import quick_synthesize
from planetex.buffers import ReferenceImage, prepare_base_buffers
from planetex.config import PlanetOptions, build_noise_layers
from planetex.errors import SynthesisError
from planetex.gradient import generate_gradient
from planetex.worker import SynthesisRequest, SynthesisWorker

LAYERS = build_noise_layers(PlanetOptions(terrain_seed="abc"))


def _request(generation=0, tier=8):
    height, specular, diffuse = prepare_base_buffers(
        tier, ReferenceImage.sphere(), generate_gradient(5))
    return SynthesisRequest(generation, tier, 5, LAYERS,
                            height.transfer(), specular.transfer(), diffuse.transfer())


def _wait_for(worker, count=1, timeout=10.0):
    outcomes = []
    deadline = time.monotonic() + timeout
    while len(outcomes) < count and time.monotonic() < deadline:
        outcomes.extend(worker.drain())
        time.sleep(0.005)
    return outcomes


def test_worker_completes_requests_in_background():
    worker = SynthesisWorker(quick_synthesize)
    request = _request(generation=3)
    try:
        worker.submit(request)
        outcomes = _wait_for(worker)
    finally:
        worker.stop()

    assert len(outcomes) == 1
    outcome = outcomes[0]
    assert outcome.ok
    assert (outcome.generation, outcome.tier) == (3, 8)
    assert outcome.result.height.size == 8
    assert outcome.elapsed >= 0
    # входные буферы освобождены, результат жив
    assert request.height.released
    assert request.specular.released
    assert outcome.result.specular.alive


def test_drain_never_blocks():
    worker = SynthesisWorker(quick_synthesize)
    assert worker.drain() == []


def test_failure_becomes_synthesis_error():
    def broken(*args):
        raise RuntimeError("out of noise")

    worker = SynthesisWorker(broken)
    request = _request(tier=16)
    with pytest.warns(UserWarning, match="16px"):
        outcome = worker._run(request)

    assert not outcome.ok
    assert isinstance(outcome.error, SynthesisError)
    assert outcome.error.tier == 16
    assert isinstance(outcome.error.__cause__, RuntimeError)
    assert request.height.released
    assert request.diffuse.released


def test_stop_releases_queued_requests():
    gate = threading.Event()

    def slow(*args):
        gate.wait(5.0)
        return quick_synthesize(*args)

    worker = SynthesisWorker(slow)
    first, second = _request(), _request()
    worker.submit(first)
    worker.submit(second)
    time.sleep(0.05)
    worker.stop(timeout=0.1)
    gate.set()

    assert second.height.released
    assert second.diffuse.released
