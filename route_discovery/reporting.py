"""Output writers for discovery runs."""
from __future__ import annotations

import csv
import json
import os
import tempfile
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional, TextIO

from .models import PlaceCandidate

CANDIDATE_CSV_FIELDS = [
    "external_id",
    "name",
    "primary_type",
    "combined_types",
    "types",
    "rating",
    "review_count",
    "latitude",
    "longitude",
    "address",
    "description",
    "photo_names",
    "source",
    "all_sources",
]


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def _fsync_dir(path: str) -> None:
    try:
        dir_fd = os.open(path, os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dir_fd)
    except OSError:
        pass
    finally:
        os.close(dir_fd)


@contextmanager
def atomic_writer(
    path: str,
    mode: str = "w",
    encoding: str = "utf-8",
    newline: Optional[str] = None,
) -> Iterator[TextIO]:
    dir_path = os.path.dirname(path) or "."
    base = os.path.basename(path)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{base}.", suffix=".tmp", dir=dir_path)
    try:
        with os.fdopen(fd, mode, encoding=encoding, newline=newline) as f:
            yield f
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
        _fsync_dir(dir_path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def write_json_object(path: str, payload: Dict[str, Any]) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_candidates_json(path: str, candidates: Iterable[PlaceCandidate]) -> None:
    with atomic_writer(path, mode="w", encoding="utf-8") as f:
        json.dump([c.to_dict() for c in candidates], f, ensure_ascii=False, indent=2)


def candidate_csv_row(candidate: PlaceCandidate) -> Dict[str, Any]:
    data = candidate.to_dict()
    return {
        "external_id": data["external_id"] or "",
        "name": data["name"],
        "primary_type": data["primary_type"],
        "combined_types": json.dumps(data["combined_types"] or [], ensure_ascii=False),
        "types": json.dumps(data["types"], ensure_ascii=False),
        "rating": "" if data["rating"] is None else data["rating"],
        "review_count": data["review_count"],
        "latitude": data["latitude"],
        "longitude": data["longitude"],
        "address": data["address"],
        "description": data["description"],
        "photo_names": json.dumps([p["name"] for p in data["photos"]], ensure_ascii=False),
        "source": data["source"],
        "all_sources": json.dumps(data["all_sources"], ensure_ascii=False),
    }


def write_candidates_csv(path: str, candidates: Iterable[PlaceCandidate]) -> None:
    """CSV with a fixed header; list columns are JSON-encoded."""
    with atomic_writer(path, mode="w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=CANDIDATE_CSV_FIELDS)
        writer.writeheader()
        for candidate in candidates:
            writer.writerow(candidate_csv_row(candidate))
