"""Batched snap-to-road for raw GPS traces."""
from __future__ import annotations

import logging
from typing import List, Protocol, Sequence

import requests

from . import config
from .models import Coordinate
from .roads_client import SnapResult

logger = logging.getLogger(__name__)


class RoadSnapper(Protocol):
    def snap_batch(self, points: Sequence[Coordinate], interpolate: bool = True) -> SnapResult: ...


def split_batches(points: Sequence[Coordinate], batch_size: int) -> List[List[Coordinate]]:
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    return [list(points[i : i + batch_size]) for i in range(0, len(points), batch_size)]


class RoadSnapBatcher:
    """Snaps a trace batch by batch, one request at a time.

    Batches run sequentially to stay under the upstream per-second limit. A
    batch that fails contributes no points; later batches still run.
    """

    def __init__(self, snapper: RoadSnapper, batch_size: int = config.SNAP_BATCH_SIZE) -> None:
        self.snapper = snapper
        self.batch_size = batch_size

    def snap(self, raw_trace: Sequence[Coordinate]) -> List[Coordinate]:
        if not raw_trace:
            return []

        batches = split_batches(raw_trace, self.batch_size)
        snapped: List[Coordinate] = []
        for idx, batch in enumerate(batches, start=1):
            logger.debug("Snapping batch %s/%s (%s points)", idx, len(batches), len(batch))
            try:
                result = self.snapper.snap_batch(batch, interpolate=True)
            except requests.RequestException as exc:
                logger.warning("Snap batch %s/%s failed: %s", idx, len(batches), exc)
                continue
            if not result.ok:
                logger.warning("Snap batch %s/%s returned HTTP %s; skipping", idx, len(batches), result.status)
                continue
            snapped.extend(result.points)
        return snapped
