"""Command line interface for the marker store."""
from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path

from .core.errors import MarkerStoreError
from .service import MarkerService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Map marker store")
    parser.add_argument("-c", "--config", required=True, help="Path to marker_store_config.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("validate", help="Validate the markers file without loading it")
    sub.add_parser("list", help="List marker sets and markers")
    sub.add_parser("normalize", help="Load the markers file and write it back normalised")
    sub.add_parser("watch", help="Reload the markers file whenever it changes")
    return parser


def _load_service(args: argparse.Namespace) -> MarkerService:
    return MarkerService(Path(args.config))


def cmd_validate(args: argparse.Namespace) -> int:
    service = _load_service(args)
    result = service.validate()
    print(json.dumps(result.summary(), indent=2))
    return 0 if result.ok else 1


def cmd_list(args: argparse.Namespace) -> int:
    service = _load_service(args)
    report = service.reload(overwrite_changes=True)
    payload = {
        marker_set.id: {
            "label": marker_set.label,
            "markers": {
                marker.id: {"type": marker.marker_type, "label": marker.label, "map": marker.map.id}
                for marker in marker_set.markers
            },
        }
        for marker_set in service.store.marker_sets
    }
    print(json.dumps({"markerSets": payload, "skipped": report.summary()["skipped"]}, indent=2))
    return 0


def cmd_normalize(args: argparse.Namespace) -> int:
    service = _load_service(args)
    report = service.reload(overwrite_changes=True)
    if report.skipped:
        # Saving now would drop the skipped markers from the file.
        print(json.dumps(report.summary(), indent=2))
        return 1
    path = service.save()
    print(f"Normalised {report.loaded} markers in {path}")
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    service = _load_service(args)
    service.reload()
    service.start_watcher()
    print("Watching for changes. Press Ctrl+C to exit.")
    try:
        while True:
            time.sleep(0.5)
    except KeyboardInterrupt:
        service.stop_watcher()
        print("Watcher stopped")
    return 0


COMMAND_HANDLERS = {
    "validate": cmd_validate,
    "list": cmd_list,
    "normalize": cmd_normalize,
    "watch": cmd_watch,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    handler = COMMAND_HANDLERS[args.command]
    try:
        return handler(args)
    except MarkerStoreError as err:
        print(f"error: {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
