from patient_monitor.broadcast import PATIENT_ALERT, PATIENT_UPDATE, ConnectionRegistry
from patient_monitor.models import Reading

from .conftest import CHANNEL, topic


def _events(client, name):
    return [e["args"][0] for e in client.get_received() if e["name"] == name]


def test_registry_tracks_connections():
    registry = ConnectionRegistry()
    registry.connect("a")
    registry.connect("b")
    registry.connect("a")
    assert registry.count == 2
    assert "a" in registry

    registry.disconnect("a")
    registry.disconnect("zzz")
    assert registry.count == 1
    assert "a" not in registry


def test_viewer_lifecycle_updates_registry(app):
    socketio = app.extensions["socketio"]
    registry = app.extensions["broadcaster"].registry

    viewer = socketio.test_client(app)
    assert viewer.is_connected()
    assert registry.count == 1

    viewer.disconnect()
    assert registry.count == 0


def test_update_reaches_every_viewer(app):
    socketio = app.extensions["socketio"]
    broadcaster = app.extensions["broadcaster"]
    viewers = [socketio.test_client(app), socketio.test_client(app)]

    broadcaster.patient_update("P001", {"heartRate": 80.0}, "2026-01-01T12:00:00Z", False)

    expected = {
        "patientId": "P001",
        "reading": {"heartRate": 80.0, "timestamp": "2026-01-01T12:00:00Z", "isAlert": False},
    }
    for viewer in viewers:
        assert _events(viewer, PATIENT_UPDATE) == [expected]


def test_alert_payload(app):
    socketio = app.extensions["socketio"]
    broadcaster = app.extensions["broadcaster"]
    viewer = socketio.test_client(app)

    broadcaster.patient_alert("P001", "John Doe", {"oxygenSaturation": 90.0}, "2026-01-01T12:00:00Z")

    assert _events(viewer, PATIENT_ALERT) == [{
        "patientId": "P001",
        "name": "John Doe",
        "reading": {"oxygenSaturation": 90.0, "timestamp": "2026-01-01T12:00:00Z"},
    }]


def test_emits_without_local_viewers(app, monkeypatch):
    broadcaster = app.extensions["broadcaster"]
    sent = []
    monkeypatch.setattr(broadcaster.socketio, "emit", lambda *a, **kw: sent.append(a))

    broadcaster.patient_update("P001", {"heartRate": 80.0}, "2026-01-01T12:00:00Z", False)

    assert broadcaster.registry.count == 0
    assert [event for event, _ in sent] == [PATIENT_UPDATE]


def test_late_viewer_gets_no_replay(app):
    socketio = app.extensions["socketio"]
    broadcaster = app.extensions["broadcaster"]
    early = socketio.test_client(app)

    broadcaster.patient_update("P001", {"heartRate": 80.0}, "2026-01-01T12:00:00Z", False)
    late = socketio.test_client(app)

    assert len(_events(early, PATIENT_UPDATE)) == 1
    assert _events(late, PATIENT_UPDATE) == []


def test_ingested_alert_is_broadcast(app, patient):
    socketio = app.extensions["socketio"]
    viewer = socketio.test_client(app)

    reading = app.extensions["ingestion"].handle(topic(CHANNEL, "field1"), b"110")

    assert reading.is_alert is True
    received = viewer.get_received()
    names = [e["name"] for e in received]
    assert names == [PATIENT_UPDATE, PATIENT_ALERT]
    update, alert = (e["args"][0] for e in received)
    assert update["patientId"] == "P001"
    assert update["reading"]["heartRate"] == 110.0
    assert update["reading"]["isAlert"] is True
    assert alert["name"] == "John Doe"
    assert "isAlert" not in alert["reading"]
    assert Reading.query.count() == 1
