"""Tests for deferred resource disposal."""

import pytest

from conftest import FakeClock
from planetex.disposal import DisposalScheduler


class Resource:
    def __init__(self, name):
        self.name = name
        self.disposed = 0

    def dispose(self):
        self.disposed += 1


def test_resources_are_released_at_their_due_time():
    clock = FakeClock(10.0)
    scheduler = DisposalScheduler(clock)
    early, late = Resource("early"), Resource("late")

    assert scheduler.schedule(late, 5.0) == 15.0
    assert scheduler.schedule(early, 2.0) == 12.0
    assert len(scheduler) == 2
    assert scheduler.next_due == 12.0

    clock.advance(1.5)
    assert scheduler.run_due() == 0
    clock.advance(0.5)
    assert scheduler.run_due() == 1
    assert early.disposed == 1 and late.disposed == 0

    assert scheduler.run_due(now=15.0) == 1
    assert late.disposed == 1
    assert len(scheduler) == 0
    assert scheduler.next_due is None
    assert scheduler.released == 2


def test_explicit_now_overrides_clock():
    scheduler = DisposalScheduler(FakeClock(0.0))
    resource = Resource("r")
    scheduler.schedule(resource, 1.0, now=100.0)
    assert scheduler.run_due(now=100.5) == 0
    assert scheduler.run_due(now=101.0) == 1


def test_flush_releases_everything():
    scheduler = DisposalScheduler(FakeClock())
    resources = [Resource(i) for i in range(3)]
    for delay, resource in zip((1.0, 100.0, 0.0), resources):
        scheduler.schedule(resource, delay)
    assert scheduler.flush() == 3
    assert all(resource.disposed == 1 for resource in resources)
    assert scheduler.flush() == 0


def test_negative_delay_is_rejected():
    with pytest.raises(ValueError):
        DisposalScheduler(FakeClock()).schedule(Resource("r"), -1.0)


def test_failing_resource_does_not_block_others():
    class Broken:
        def dispose(self):
            raise RuntimeError("device lost")

    scheduler = DisposalScheduler(FakeClock())
    healthy = Resource("ok")
    scheduler.schedule(Broken(), 0.0)
    scheduler.schedule(healthy, 0.0)

    assert scheduler.run_due() == 2
    assert healthy.disposed == 1
    assert scheduler.failed == 1
    assert scheduler.released == 1
    assert len(scheduler) == 0
