"""YAML-backed store holding every marker set of a deployment."""
from __future__ import annotations

import json
import logging
import os
import shutil
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

import yaml
from jsonschema import Draft7Validator

from .config_node import ConfigNode
from .errors import InvalidArgumentError, MarkerFormatError, MarkerStoreError
from .marker_set import LoadReport, MarkerSet
from .markers import MarkerContext
from .state_store import StateStore

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_FILE = Path(__file__).resolve().parents[1] / "schemas" / "markers.schema.json"


@dataclass
class StoreResult:
    ok: bool
    count: int
    errors: List[str] = field(default_factory=list)

    def summary(self) -> Dict[str, object]:
        return {
            "ok": self.ok,
            "count": self.count,
            "errors": list(self.errors),
        }


class MarkerStore:
    """Load and save marker sets from a single YAML document."""

    def __init__(
        self,
        markers_file: Path | str,
        api: MarkerContext,
        backup_dir: Optional[Path | str] = None,
        schema_file: Optional[Path | str] = None,
        atomic_writes: bool = True,
    ):
        self.markers_file = Path(markers_file)
        self.api = api
        self.backup_dir = Path(backup_dir) if backup_dir is not None else None
        self.schema_file = Path(schema_file) if schema_file is not None else DEFAULT_SCHEMA_FILE
        self.atomic_writes = atomic_writes
        with open(self.schema_file, "r", encoding="utf-8") as handle:
            self.schema = json.load(handle)
        self.state_store = StateStore(self.markers_file.with_suffix(".state.json"))

        self._sets: Dict[str, MarkerSet] = {}
        self._removed: set[str] = set()
        self._lock = threading.RLock()

    # ----------------------- marker sets -----------------------
    @property
    def marker_sets(self) -> List[MarkerSet]:
        with self._lock:
            return list(self._sets.values())

    def get_marker_set(self, set_id: str) -> Optional[MarkerSet]:
        with self._lock:
            return self._sets.get(set_id)

    def create_marker_set(self, set_id: str) -> MarkerSet:
        with self._lock:
            marker_set = self._sets.get(set_id)
            if marker_set is None:
                marker_set = MarkerSet(set_id)
                self._sets[set_id] = marker_set
                self._removed.discard(set_id)
            return marker_set

    def remove_marker_set(self, set_id: str) -> bool:
        if set_id is None:
            raise InvalidArgumentError("marker set id must not be None")
        with self._lock:
            if self._sets.pop(set_id, None) is None:
                return False
            self._removed.add(set_id)
            return True

    @property
    def dirty(self) -> bool:
        with self._lock:
            return bool(self._removed) or any(s.dirty for s in self._sets.values())

    # ----------------------- loading -----------------------
    def _read_document(self) -> ConfigNode:
        if not self.markers_file.exists():
            return ConfigNode.empty()
        try:
            with open(self.markers_file, "r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle)
        except yaml.YAMLError as err:
            raise MarkerStoreError(f"Failed to parse {self.markers_file}: {err}") from err
        try:
            return ConfigNode.from_data(data)
        except TypeError as err:
            raise MarkerStoreError(f"Unsupported YAML payload in {self.markers_file}: {err}") from err

    @staticmethod
    def _sets_node(root: ConfigNode) -> ConfigNode:
        sets_node = root.get_node("markerSets")
        if not (sets_node.is_virtual() or sets_node.is_null() or sets_node.is_map()):
            raise MarkerStoreError("markerSets must be a mapping of set id to marker set")
        return sets_node

    def load(self, overwrite_changes: bool = False) -> LoadReport:
        """Read the markers file, keeping unsaved changes unless ``overwrite_changes``."""

        with self._lock:
            root = self._read_document()
            sets_node = self._sets_node(root)
            report = LoadReport()
            if overwrite_changes:
                self._removed.clear()

            seen = set()
            for set_id, set_node in sets_node.get_children_map().items():
                seen.add(set_id)
                if set_id in self._removed:
                    continue
                existing = self._sets.get(set_id)
                marker_set = existing or MarkerSet(set_id)
                try:
                    set_report = marker_set.load(
                        self.api, set_node, overwrite_changes or existing is None
                    )
                except MarkerFormatError as err:
                    logger.warning("Skipping marker set %s: %s", set_id, err)
                    report.skipped.append((set_id, str(err)))
                    continue
                self._sets[set_id] = marker_set
                report.merge(set_report, prefix=f"{set_id}/")

            for set_id in list(self._sets):
                if set_id in seen:
                    continue
                if overwrite_changes or not self._sets[set_id].dirty:
                    del self._sets[set_id]
                    report.removed.append(set_id)

            self.state_store.record_load(report, len(self._sets), self._markers_total())
        logger.info(
            "Loaded %d markers from %s (%d skipped)",
            report.loaded,
            self.markers_file,
            len(report.skipped),
        )
        return report

    # ----------------------- saving -----------------------
    def to_node(self) -> ConfigNode:
        with self._lock:
            root = ConfigNode.empty()
            sets_node = root.get_node("markerSets")
            sets_node.set_value({})
            for set_id, marker_set in self._sets.items():
                marker_set.save(sets_node.get_node(set_id))
            self._removed.clear()
            return root

    def save(self) -> Path:
        """Write every marker set to the markers file.

        Unsaved changes stay flagged as unsaved when serialising or writing fails.
        """
        with self._lock:
            state = self._dirty_state()
            try:
                text = yaml.safe_dump(self.to_node().to_data(), sort_keys=False, allow_unicode=True)
                self._write_document(text)
            except Exception:
                self._restore_dirty(state)
                raise
            self.state_store.record_save(text, len(self._sets), self._markers_total())
        logger.info("Saved marker sets to %s", self.markers_file)
        return self.markers_file

    def _markers_total(self) -> int:
        return sum(len(s.markers) for s in self._sets.values())

    def _dirty_state(self) -> Tuple[Set[str], Dict[str, Any]]:
        return set(self._removed), {set_id: s.dirty_state() for set_id, s in self._sets.items()}

    def _restore_dirty(self, state: Tuple[Set[str], Dict[str, Any]]) -> None:
        removed, sets = state
        self._removed |= {set_id for set_id in removed if set_id not in self._sets}
        for set_id, set_state in sets.items():
            marker_set = self._sets.get(set_id)
            if marker_set is not None:
                marker_set.restore_dirty(set_state)

    def _write_document(self, text: str) -> None:
        self.markers_file.parent.mkdir(parents=True, exist_ok=True)
        if not self.atomic_writes:
            with open(self.markers_file, "w", encoding="utf-8") as handle:
                handle.write(text)
            return
        tmp_path = Path(f"{self.markers_file}.tmp")
        with open(tmp_path, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        if self.backup_dir is not None and self.markers_file.exists():
            self.backup_dir.mkdir(parents=True, exist_ok=True)
            timestamp = time.strftime("%Y%m%d_%H%M%S")
            backup_path = self.backup_dir / f"{self.markers_file.stem}_{timestamp}{self.markers_file.suffix}"
            shutil.copy2(self.markers_file, backup_path)
        os.replace(tmp_path, self.markers_file)

    # ----------------------- validation -----------------------
    def validate_only(self) -> StoreResult:
        """Check the markers file without touching the loaded marker sets."""

        try:
            root = self._read_document()
        except MarkerStoreError as err:
            return StoreResult(ok=False, count=0, errors=[str(err)])

        data = root.to_data()
        if data is None:
            data = {}
        validator = Draft7Validator(self.schema)
        errors = [
            f"{'/'.join(str(p) for p in error.path) or '<root>'}: {error.message}"
            for error in sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        ]

        count = 0
        try:
            sets_node = self._sets_node(root)
        except MarkerStoreError as err:
            return StoreResult(ok=False, count=0, errors=errors or [str(err)])
        for set_id, set_node in sets_node.get_children_map().items():
            try:
                report = MarkerSet(set_id).load(self.api, set_node, overwrite_changes=True)
            except MarkerFormatError as err:
                errors.append(f"{set_id}: {err}")
                continue
            count += report.loaded
            errors.extend(f"{set_id}/{marker_id}: {message}" for marker_id, message in report.skipped)
        return StoreResult(ok=not errors, count=count, errors=errors)
