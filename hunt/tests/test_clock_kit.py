import json

import msgspec
import pytest

from geo.coords import ScaledCoordinate
from hunt.clock import Clock, ManualClock, SystemClock
from hunt.kit import decode_kit, encode_kit, new_kit, read_kit, write_kit
from zk.commitments import location_commitment

TARGET = ScaledCoordinate(37_769_400, -122_486_200)


def test_manual_clock():
    c = ManualClock(100)
    assert isinstance(c, Clock)
    assert c.advance(5) == 105
    assert c.set(200) == 200
    with pytest.raises(ValueError):
        c.set(199)
    with pytest.raises(ValueError):
        c.advance(-1)
    with pytest.raises(ValueError):
        ManualClock(-1)


def test_system_clock_is_monotonic(monkeypatch):
    readings = iter([1_000, 990, 1_005])
    monkeypatch.setattr("hunt.clock.time.time", lambda: next(readings))
    c = SystemClock()
    assert [c.now(), c.now(), c.now()] == [1_000, 1_000, 1_005]


def test_new_kit_commits_to_target():
    kit = new_kit(TARGET, 10_000, secret=12345, hunt_id=3)
    assert kit.hunt_id == 3
    assert kit.secret == "12345"
    assert kit.commitment == location_commitment(TARGET.lat, TARGET.lon, 10_000)
    assert kit.target == TARGET


def test_random_secret_differs():
    a, b = new_kit(TARGET), new_kit(TARGET)
    assert a.secret != b.secret
    assert a.location_commitment == b.location_commitment


def test_kit_file_roundtrip(tmp_path):
    kit = new_kit(TARGET, secret=7).with_hunt_id(5)
    path = write_kit(kit, tmp_path / "kit.json")
    data = json.loads(path.read_text())
    assert set(data) == {"hunt_id", "secret", "lat", "lon", "radius_squared", "location_commitment"}
    assert read_kit(path) == kit


def test_tampered_kit_rejected():
    kit = new_kit(TARGET, secret=7)
    data = json.loads(encode_kit(kit))
    data["lat"] += 1
    with pytest.raises(ValueError):
        decode_kit(json.dumps(data))
    data = json.loads(encode_kit(kit))
    data["lat"] = "north"
    with pytest.raises(msgspec.ValidationError):
        decode_kit(json.dumps(data))
