"""
Real-time fan-out of patient updates to connected dashboard viewers.

Viewers connect over Socket.IO and only ever receive events; there are no
client-to-server messages besides connect/disconnect. Delivery is
at-most-once with no replay for viewers that connect later.
"""
from __future__ import annotations

import logging
import threading

from flask import request
from flask_socketio import SocketIO

logger = logging.getLogger(__name__)

PATIENT_UPDATE = "patientUpdate"
PATIENT_ALERT = "patientAlert"


class ConnectionRegistry:
    """Thread-safe set of connected Socket.IO session ids."""

    def __init__(self):
        self._sids: set[str] = set()
        self._lock = threading.Lock()

    def connect(self, sid: str) -> None:
        with self._lock:
            self._sids.add(sid)

    def disconnect(self, sid: str) -> None:
        with self._lock:
            self._sids.discard(sid)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._sids)

    def __contains__(self, sid: str) -> bool:
        with self._lock:
            return sid in self._sids


class Broadcaster:
    """Owns the viewer registry and emits patient events to every viewer."""

    def __init__(self, socketio: SocketIO, registry: ConnectionRegistry | None = None):
        self.socketio = socketio
        self.registry = registry or ConnectionRegistry()
        socketio.on_event("connect", self._on_connect)
        socketio.on_event("disconnect", self._on_disconnect)

    def _on_connect(self, auth=None):
        self.registry.connect(request.sid)
        logger.info("Viewer connected sid=%s viewers=%d", request.sid, self.registry.count)

    def _on_disconnect(self, reason=None):
        self.registry.disconnect(request.sid)
        logger.info("Viewer disconnected sid=%s viewers=%d", request.sid, self.registry.count)

    def _emit(self, event: str, payload: dict) -> None:
        # registry only sees this process; with a message queue other workers hold viewers too
        logger.debug("Emitting %s to %d local viewers", event, self.registry.count)
        self.socketio.emit(event, payload)

    def patient_update(self, patient_id: str, fields: dict, timestamp: str, is_alert: bool) -> None:
        self._emit(PATIENT_UPDATE, {
            "patientId": patient_id,
            "reading": {**fields, "timestamp": timestamp, "isAlert": is_alert},
        })

    def patient_alert(self, patient_id: str, name: str, fields: dict, timestamp: str) -> None:
        self._emit(PATIENT_ALERT, {
            "patientId": patient_id,
            "name": name,
            "reading": {**fields, "timestamp": timestamp},
        })
