"""High-level service orchestration for the marker store."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .core.maps import MapRegistry
from .core.marker_set import LoadReport
from .core.store import DEFAULT_SCHEMA_FILE, MarkerStore, StoreResult

logger = logging.getLogger(__name__)


@dataclass
class StoreConfig:
    markers_file: Path
    backup_dir: Path
    schema_file: Path = DEFAULT_SCHEMA_FILE
    atomic_writes: bool = True
    watch: bool = False
    debounce_seconds: float = 0.5
    maps: List[Dict[str, Any]] = field(default_factory=list)

    @staticmethod
    def from_mapping(
        mapping: Dict[str, Any],
        base_dir: Optional[Path] = None,
    ) -> "StoreConfig":
        def resolve(value: str) -> Path:
            path = Path(value)
            if not path.is_absolute() and base_dir is not None:
                path = base_dir / path
            return path

        schema_file = mapping.get("schema_file")
        return StoreConfig(
            markers_file=resolve(mapping["markers_file"]),
            backup_dir=resolve(mapping["backup_dir"]),
            schema_file=resolve(schema_file) if schema_file else DEFAULT_SCHEMA_FILE,
            atomic_writes=bool(mapping.get("atomic_writes", True)),
            watch=bool(mapping.get("watch", False)),
            debounce_seconds=float(mapping.get("debounce_seconds", 0.5)),
            maps=[dict(entry) for entry in mapping.get("maps") or []],
        )


@dataclass
class ServiceStatus:
    last_load: Optional[float] = None
    last_save: Optional[float] = None
    last_report: Optional[LoadReport] = None
    last_validation: Optional[StoreResult] = None
    recent_events: List[Dict[str, Any]] = field(default_factory=list)


class MarkerService:
    """Coordinate the marker store, its map registry and the file watcher."""

    MAX_EVENTS = 200

    def __init__(self, config_path: Path):
        self.config_path = Path(config_path)
        self.config = load_config(self.config_path)
        self.maps = MapRegistry.from_mappings(self.config.maps)
        self.store = MarkerStore(
            self.config.markers_file,
            self.maps,
            backup_dir=self.config.backup_dir,
            schema_file=self.config.schema_file,
            atomic_writes=self.config.atomic_writes,
        )
        self.status = ServiceStatus()
        self._watch_thread: Optional[threading.Thread] = None
        self._watch_stop = threading.Event()
        self._lock = threading.Lock()

    # ----------------------- core store ops -----------------------
    def reload(self, overwrite_changes: bool = False) -> LoadReport:
        """Re-read the markers file without discarding unsaved edits by default."""
        with self._lock:
            report = self.store.load(overwrite_changes=overwrite_changes)
            self.status.last_load = time.time()
            self.status.last_report = report
            self._record_event("load", report.summary())
        return report

    def save(self) -> Path:
        with self._lock:
            path = self.store.save()
            self.status.last_save = time.time()
            self._record_event("save", {"file": str(path)})
        return path

    def validate(self) -> StoreResult:
        with self._lock:
            result = self.store.validate_only()
            self.status.last_validation = result
            self._record_event("validate", result.summary())
        return result

    # ----------------------- status & logs -----------------------
    def status_payload(self) -> Dict[str, Any]:
        metrics = self.store.state_store.load()

        def iso(value: Any) -> Optional[str]:
            if isinstance(value, (int, float)):
                return datetime.fromtimestamp(float(value), tz=timezone.utc).isoformat()
            return None

        return {
            "markers_file": str(self.config.markers_file),
            "sets": len(self.store.marker_sets),
            "markers": sum(len(s.markers) for s in self.store.marker_sets),
            "dirty": self.store.dirty,
            "skipped": [str(item) for item in metrics.skipped],
            "skipped_by_set": dict(metrics.skipped_by_set),
            "hash_document": metrics.hash_document,
            "last_load_ts": iso(metrics.last_load_ts),
            "last_save_ts": iso(metrics.last_save_ts),
            "maps": [map_ref.id for map_ref in self.maps.maps],
            "metrics": metrics.to_mapping(),
        }

    def recent_logs(self, limit: int = 50) -> List[Dict[str, Any]]:
        return list(self.status.recent_events[-limit:])

    def _record_event(self, event_type: str, payload: Dict[str, Any]):
        event = {"type": event_type, "timestamp": time.time(), "payload": payload}
        self.status.recent_events.append(event)
        del self.status.recent_events[:-self.MAX_EVENTS]
        logger.debug("%s: %s", event_type, payload)

    # ----------------------- watcher -----------------------
    def start_watcher(
        self,
        debounce_seconds: Optional[float] = None,
        observer_factory=None,
        timer_factory=None,
    ):
        """Reload the markers file whenever it changes on disk."""
        if self._watch_thread and self._watch_thread.is_alive():
            return

        self._watch_stop.clear()
        delay = self.config.debounce_seconds if debounce_seconds is None else debounce_seconds
        watched = self.config.markers_file

        def loop():
            from watchdog.events import FileSystemEventHandler
            from watchdog.observers import Observer

            class Handler(FileSystemEventHandler):
                def __init__(self, service: "MarkerService"):
                    self.service = service
                    self._timer: Optional[threading.Timer] = None

                def on_any_event(self, event):  # type: ignore[override]
                    if event.is_directory:
                        return
                    paths = [getattr(event, "src_path", ""), getattr(event, "dest_path", "")]
                    if not any(path and Path(path).name == watched.name for path in paths):
                        return
                    if self._timer:
                        self._timer.cancel()
                    factory = timer_factory or threading.Timer
                    self._timer = factory(delay, self._run)
                    self._timer.start()

                def _run(self):
                    try:
                        self.service.reload()
                    except Exception as error:
                        logger.exception("Reloading %s failed", watched)
                        self.service._record_event("watch_error", {"error": str(error)})

            observer_cls = observer_factory or Observer
            observer = observer_cls()
            handler = Handler(self)
            watched.parent.mkdir(parents=True, exist_ok=True)
            observer.schedule(handler, str(watched.parent), recursive=False)
            observer.start()
            try:
                while not self._watch_stop.is_set():
                    time.sleep(0.1)
            finally:
                observer.stop()
                observer.join()

        self._watch_thread = threading.Thread(target=loop, daemon=True)
        self._watch_thread.start()
        self._record_event("watch_start", {"file": str(watched)})

    def stop_watcher(self):
        if not self._watch_thread:
            return
        self._watch_stop.set()
        self._watch_thread.join(timeout=2)
        self._record_event("watch_stop", {})


def load_config(path: Path) -> StoreConfig:
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    return StoreConfig.from_mapping(data, Path(path).parent)
