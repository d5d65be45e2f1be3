import json

import pytest

from footprint_grid.errors import PersistenceFailure
from footprint_grid.models import Coordinate, Session
from footprint_grid.storage import GPS_SESSIONS_KEY, JsonSessionStore, MemorySessionStore, load_sessions_best_effort

S1 = Session(
    id="session_1700000060000",
    start_ms=1_700_000_000_000,
    end_ms=1_700_000_060_000,
    coordinates=(Coordinate(35.6812, 139.7671), Coordinate(35.68123456789, 139.76712345678)),
)
S2 = Session(id="session_1700000200000", start_ms=1_700_000_100_000, end_ms=1_700_000_200_000, coordinates=())


def test_missing_or_blank_file_loads_empty(tmp_path):
    path = tmp_path / "sessions.json"
    assert JsonSessionStore(path).load() == []
    path.write_text("  \n", encoding="utf-8")
    assert JsonSessionStore(path).load() == []


def test_append_then_load_round_trips(tmp_path):
    store = JsonSessionStore(tmp_path / "nested" / "sessions.json")
    store.append(S1)
    store.append(S2)
    assert store.load() == [S1, S2]
    assert JsonSessionStore(store.path).load() == [S1, S2]


def test_file_uses_session_record_shape(tmp_path):
    store = JsonSessionStore(tmp_path / "sessions.json")
    store.append(S1)
    doc = json.loads(store.path.read_text(encoding="utf-8"))
    record = doc[GPS_SESSIONS_KEY][0]
    assert record["id"] == S1.id
    assert record["startTime"] == S1.start_ms
    assert record["endTime"] == S1.end_ms
    assert record["coordinates"][0] == {"latitude": 35.6812, "longitude": 139.7671}


@pytest.mark.parametrize(
    "raw",
    [
        b"{not json",
        json.dumps({"other_key": []}).encode(),
        json.dumps({GPS_SESSIONS_KEY: {"id": "x"}}).encode(),
        json.dumps({GPS_SESSIONS_KEY: [{"id": "x", "startTime": "soon", "endTime": 1, "coordinates": []}]}).encode(),
        b'{"gps_sessions": [\xff\xfe]}',
        b'{"gps_sessions": [{"id": "x", "startTime": Infinity, "endTime": 1, "coordinates": []}]}',
        b'{"gps_sessions": [{"id": "x", "startTime": 0, "endTime": NaN, "coordinates": []}]}',
    ],
)
def test_malformed_file_raises_and_is_backed_up(tmp_path, raw):
    path = tmp_path / "sessions.json"
    path.write_bytes(raw)
    with pytest.raises(PersistenceFailure):
        JsonSessionStore(path).load()
    assert (tmp_path / "sessions.json.broken").read_bytes() == raw
    assert load_sessions_best_effort(JsonSessionStore(path)) == []


def test_append_does_not_overwrite_malformed_file(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(PersistenceFailure):
        JsonSessionStore(path).append(S1)
    assert path.read_text(encoding="utf-8") == "{not json"


def test_best_effort_load_falls_back_to_empty(tmp_path):
    path = tmp_path / "sessions.json"
    path.write_text("[1, 2", encoding="utf-8")
    assert load_sessions_best_effort(JsonSessionStore(path)) == []


def test_memory_store():
    store = MemorySessionStore([S1])
    store.append(S2)
    assert store.load() == [S1, S2]
    store.fail_on_append = True
    with pytest.raises(PersistenceFailure):
        store.append(S1)
    assert store.load() == [S1, S2]
