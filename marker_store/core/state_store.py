"""Load/save metrics persisted in a JSON file beside the markers document."""
from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
import time
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .marker_set import LoadReport

logger = logging.getLogger(__name__)


@dataclass
class StoreMetrics:
    last_load_ts: Optional[float] = None
    last_save_ts: Optional[float] = None
    sets_total: int = 0
    markers_total: int = 0
    loaded: int = 0
    removed: int = 0
    skipped: List[str] = field(default_factory=list)
    skipped_by_set: Dict[str, int] = field(default_factory=dict)
    hash_document: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StoreMetrics":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_mapping(self) -> Dict[str, Any]:
        return asdict(self)


def skipped_by_set(report: LoadReport) -> Dict[str, int]:
    """Count skipped entries per marker set; a skipped set counts once."""

    counts: Dict[str, int] = {}
    for entry_id, _ in report.skipped:
        set_id = entry_id.split("/", 1)[0]
        counts[set_id] = counts.get(set_id, 0) + 1
    return counts


class StateStore:
    """Record the outcome of the last load and save of a markers file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> StoreMetrics:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            return StoreMetrics()
        except (OSError, json.JSONDecodeError, TypeError) as err:
            logger.warning("Ignoring unreadable metrics file %s: %s", self.path, err)
            return StoreMetrics()
        if not isinstance(data, dict):
            return StoreMetrics()
        try:
            return StoreMetrics.from_mapping(data)
        except TypeError:
            return StoreMetrics()

    def record_load(self, report: LoadReport, sets_total: int, markers_total: int) -> StoreMetrics:
        with self._lock:
            metrics = self.load()
            metrics.last_load_ts = time.time()
            metrics.sets_total = sets_total
            metrics.markers_total = markers_total
            metrics.loaded = report.loaded
            metrics.removed = len(report.removed)
            metrics.skipped = report.summary()["skipped"]
            metrics.skipped_by_set = skipped_by_set(report)
            self._write(metrics)
            return metrics

    def record_save(self, document: str, sets_total: int, markers_total: int) -> StoreMetrics:
        with self._lock:
            metrics = self.load()
            metrics.last_save_ts = time.time()
            metrics.sets_total = sets_total
            metrics.markers_total = markers_total
            metrics.hash_document = hashlib.sha256(document.encode("utf-8")).hexdigest()
            self._write(metrics)
            return metrics

    def _write(self, metrics: StoreMetrics) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(metrics.to_mapping(), handle, ensure_ascii=False, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self.path)
