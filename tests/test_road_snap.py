import requests

from route_discovery.models import Coordinate
from route_discovery.road_snap import RoadSnapBatcher, split_batches
from route_discovery.roads_client import SnapResult


def trace(n):
    return [Coordinate(10.0 + i * 1e-4, 20.0) for i in range(n)]


class FakeSnapper:
    def __init__(self, fail_batches=(), raise_batches=()):
        self.fail_batches = set(fail_batches)
        self.raise_batches = set(raise_batches)
        self.batch_sizes = []

    def snap_batch(self, points, interpolate=True):
        idx = len(self.batch_sizes)
        self.batch_sizes.append(len(points))
        assert interpolate is True
        if idx in self.raise_batches:
            raise requests.ConnectionError("boom")
        if idx in self.fail_batches:
            return SnapResult(points=[], status=403)
        # Tag snapped points with the batch index so ordering is visible.
        return SnapResult(points=[Coordinate(p.latitude, p.longitude, idx) for p in points])


def test_split_batches_sizes():
    assert [len(b) for b in split_batches(trace(250), 100)] == [100, 100, 50]
    assert split_batches([], 100) == []


def test_snap_runs_batches_in_order():
    snapper = FakeSnapper()
    out = RoadSnapBatcher(snapper, batch_size=100).snap(trace(250))
    assert snapper.batch_sizes == [100, 100, 50]
    assert len(out) == 250
    assert [p.timestamp_millis for p in out] == [0] * 100 + [1] * 100 + [2] * 50


def test_failed_batches_are_skipped():
    snapper = FakeSnapper(fail_batches={1}, raise_batches={2})
    out = RoadSnapBatcher(snapper, batch_size=100).snap(trace(350))
    assert snapper.batch_sizes == [100, 100, 100, 50]
    assert [p.timestamp_millis for p in out] == [0] * 100 + [3] * 50


def test_empty_trace_makes_no_calls():
    snapper = FakeSnapper()
    assert RoadSnapBatcher(snapper).snap([]) == []
    assert snapper.batch_sizes == []
