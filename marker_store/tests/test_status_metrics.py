import json
from pathlib import Path

import yaml

from marker_store.service import MarkerService, StoreConfig


def write_config(tmp_path: Path, **overrides) -> Path:
    config_path = tmp_path / "marker_store_config.yaml"
    payload = {
        "markers_file": "data/markers.yaml",
        "backup_dir": "data/backups",
        "atomic_writes": True,
        "watch": False,
        "maps": [{"id": "world", "name": "World"}, {"id": "nether"}],
    }
    payload.update(overrides)
    with open(config_path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle)
    return config_path


def write_markers(path: Path, markers: dict):
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump({"markerSets": {"towns": {"markers": markers}}}, handle)


def poi(map_id: str) -> dict:
    return {"type": "poi", "map": map_id, "position": {"x": 0, "y": 64, "z": 0}}


def test_config_paths_resolve_relative_to_config_file(tmp_path):
    config = StoreConfig.from_mapping(
        {"markers_file": "markers.yaml", "backup_dir": "/abs/backups", "debounce_seconds": "2"},
        base_dir=tmp_path,
    )
    assert config.markers_file == tmp_path / "markers.yaml"
    assert config.backup_dir == Path("/abs/backups")
    assert config.debounce_seconds == 2.0
    assert config.atomic_writes is True
    assert config.maps == []


def test_state_store_records_metrics(tmp_path):
    service = MarkerService(write_config(tmp_path))
    assert service.maps.get_map("nether").name == "nether"
    write_markers(service.config.markers_file, {"a": poi("world"), "b": poi("nether"), "c": poi("end")})

    report = service.reload()
    assert report.loaded == 2
    service.save()

    status = service.status_payload()
    metrics = status["metrics"]
    assert status["sets"] == 1
    assert status["markers"] == 2
    assert status["dirty"] is False
    assert status["maps"] == ["world", "nether"]
    assert status["skipped"] == ["towns/c: Could not resolve map with id: end"]
    assert status["skipped_by_set"] == {"towns": 1}
    assert status["last_load_ts"] and status["last_save_ts"]
    assert metrics["markers_total"] == 2
    assert len(metrics["hash_document"]) == 64

    state_file = service.config.markers_file.with_suffix(".state.json")
    with open(state_file, "r", encoding="utf-8") as handle:
        persisted = json.load(handle)
    assert persisted["sets_total"] == 1


def test_recent_logs_are_capped(tmp_path):
    service = MarkerService(write_config(tmp_path))
    for _ in range(service.MAX_EVENTS + 5):
        service.reload()

    events = service.recent_logs(limit=service.MAX_EVENTS * 2)
    assert len(events) == service.MAX_EVENTS
    assert events[-1]["type"] == "load"
    assert len(service.recent_logs(limit=3)) == 3


def test_validate_records_last_result(tmp_path):
    service = MarkerService(write_config(tmp_path))
    write_markers(service.config.markers_file, {"a": poi("world")})

    result = service.validate()
    assert result.ok
    assert service.status.last_validation is result
    assert service.store.marker_sets == []
