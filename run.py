"""CLI entrypoint."""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv

from route_discovery import config
from route_discovery.discovery import RouteSearchOrchestrator
from route_discovery.http import HttpClient, RequestMetrics
from route_discovery.models import Coordinate, PreferenceSet
from route_discovery.place_types import DEFAULT_PREFERENCES
from route_discovery.places_client import PlacesClient
from route_discovery.reporting import ensure_dir, write_candidates_csv, write_candidates_json, write_json_object
from route_discovery.reviewed_store import ReviewedPlacesStore
from route_discovery.road_snap import RoadSnapBatcher
from route_discovery.roads_client import RoadsClient

logger = logging.getLogger("run")


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Load a repo-root .env file if present, without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Discover places along a recorded route")
    parser.add_argument("--route", type=str, required=True, help="Route JSON: list of {latitude, longitude}")
    parser.add_argument(
        "--prefs",
        type=str,
        default=None,
        help="Preferences JSON (default: every labelled place type enabled)",
    )
    parser.add_argument("--language", type=str, default=None, help="Result language (default from config)")
    parser.add_argument("--user-id", type=str, default=None, help="Skip places this user saved or dismissed")
    parser.add_argument("--reviewed-db", type=str, default=config.REVIEWED_DB_PATH)
    parser.add_argument("--snap", action="store_true", help="Snap the route to roads before searching")
    parser.add_argument("--config", type=str, default=None, help="Path to discovery_config.json")
    parser.add_argument("--timeout", type=float, default=None, help="Deadline for the whole search in seconds")
    parser.add_argument("--out", type=str, default=config.OUTPUT_DIR)
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def load_route(path: str) -> List[Coordinate]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("route") or data.get("points") or []
    if not isinstance(data, list):
        raise ValueError(f"Route file must contain a list of points: {path}")
    return [Coordinate.from_dict(p) for p in data]


def load_preferences(path: str) -> PreferenceSet:
    with open(path, "r", encoding="utf-8") as f:
        data: Any = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Preferences file must contain a JSON object: {path}")
    return PreferenceSet.from_mapping(data)


def main(argv: Optional[List[str]] = None) -> int:
    load_env()
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        route = load_route(args.route)
        prefs = load_preferences(args.prefs) if args.prefs else PreferenceSet(types=dict(DEFAULT_PREFERENCES))
        discovery_config = config.load_discovery_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"Input error: {exc}", file=sys.stderr)
        return 1

    api_key = (os.environ.get("GOOGLE_MAPS_API_KEY") or "").strip()
    if not api_key:
        print("Missing GOOGLE_MAPS_API_KEY in environment", file=sys.stderr)
        return 1
    roads_key = (os.environ.get("GOOGLE_ROADS_API_KEY") or "").strip() or api_key

    metrics = RequestMetrics()
    places = PlacesClient(
        HttpClient(
            api_key,
            timeout=config.HTTP_TIMEOUT_SECONDS,
            retry_max=config.HTTP_RETRY_MAX,
            backoff_base=config.HTTP_BACKOFF_BASE,
            backoff_max=config.HTTP_BACKOFF_MAX,
        ),
        metrics=metrics,
    )

    if args.snap:
        roads = RoadsClient(HttpClient(roads_key, timeout=config.HTTP_TIMEOUT_SECONDS), metrics=metrics)
        snapped = RoadSnapBatcher(roads, batch_size=discovery_config.snap_batch_size).snap(route)
        if snapped:
            logger.info("Snapped %s route points to %s road points", len(route), len(snapped))
            route = snapped
        else:
            logger.warning("Road snapping produced no points; using the raw route")

    store: Optional[ReviewedPlacesStore] = None
    if args.user_id:
        store = ReviewedPlacesStore(args.reviewed_db)

    try:
        orchestrator = RouteSearchOrchestrator(
            route_searcher=places,
            nearby_searcher=places,
            reviewed_lookup=store,
            discovery_config=discovery_config,
            metrics=metrics,
        )
        result = orchestrator.run(
            route,
            prefs,
            language=args.language,
            user_id=args.user_id,
            timeout_s=args.timeout,
        )
    finally:
        if store is not None:
            store.close()

    ensure_dir(args.out)
    write_candidates_json(os.path.join(args.out, "candidates.json"), result.candidates)
    write_candidates_csv(os.path.join(args.out, "candidates.csv"), result.candidates)
    write_json_object(
        os.path.join(args.out, "summary.json"),
        {
            "outcome": result.outcome.value,
            "states": [s.value for s in result.states],
            "used_fallback": result.used_fallback,
            "bounding_circle": (
                {
                    "center_lat": result.bounding_circle.center_lat,
                    "center_lng": result.bounding_circle.center_lng,
                    "radius_meters": result.bounding_circle.radius_meters,
                }
                if result.bounding_circle is not None
                else None
            ),
            "summary": result.summary,
        },
    )

    print(
        f"Done ({result.outcome.value}): {len(result.candidates)} places written to "
        f"{args.out}/candidates.csv and {args.out}/candidates.json"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
