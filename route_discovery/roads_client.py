"""Roads API client for snapping GPS traces to the road network."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import requests

from . import config
from .http import HttpClient, RequestMetrics
from .models import Coordinate

logger = logging.getLogger(__name__)


@dataclass
class SnapResult:
    points: List[Coordinate] = field(default_factory=list)
    status: int = 200

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class RoadsClient:
    def __init__(self, http_client: HttpClient, metrics: Optional[RequestMetrics] = None) -> None:
        self.http = http_client
        self.metrics = metrics

    def snap_batch(self, points: Sequence[Coordinate], interpolate: bool = True) -> SnapResult:
        """Snap one batch (at most 100 points). HTTP errors come back as a non-2xx status."""
        if self.metrics is not None:
            self.metrics.inc_network("snap")
        params = {
            "path": build_snap_path(points),
            "interpolate": "true" if interpolate else "false",
        }
        try:
            response = self.http.get_json(config.ROADS_SNAP_URL, params)
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else 0
            return SnapResult(points=[], status=status)
        return SnapResult(points=parse_snapped_points(response), status=200)


def build_snap_path(points: Sequence[Coordinate]) -> str:
    return "|".join(f"{p.latitude},{p.longitude}" for p in points)


def parse_snapped_points(response: Dict[str, Any]) -> List[Coordinate]:
    out: List[Coordinate] = []
    for pt in response.get("snappedPoints") or []:
        loc = pt.get("location") or {}
        lat = loc.get("latitude")
        lng = loc.get("longitude")
        if lat is None or lng is None:
            continue
        out.append(Coordinate(float(lat), float(lng)))
    return out
