# patient_monitor/telemetry.py
from __future__ import annotations

import logging

import paho.mqtt.client as mqtt
from flask import Flask

from .ingest import IngestionPipeline

logger = logging.getLogger(__name__)


class TelemetryClient:
    """
    Subscribes to the ThingSpeak MQTT broker and hands every message to the
    ingestion pipeline inside an application context.
    """

    def __init__(self, app: Flask, pipeline: IngestionPipeline, client: mqtt.Client | None = None):
        self.app = app
        self.pipeline = pipeline
        self.topic = app.config["MQTT_TOPIC"]
        self.client = client or mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=app.config["MQTT_CLIENT_ID"],
        )
        self.client.username_pw_set(
            app.config["THINGSPEAK_MQTT_USERNAME"],
            app.config["THINGSPEAK_MQTT_PASSWORD"],
        )
        self.client.on_connect = self.on_connect
        self.client.on_disconnect = self.on_disconnect
        self.client.on_message = self.on_message

    def on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            logger.error("MQTT connect refused: %s", reason_code)
            return
        logger.info("Connected to MQTT broker, subscribing to %s", self.topic)
        client.subscribe(self.topic)

    def on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        logger.warning("Disconnected from MQTT broker: %s", reason_code)

    def on_message(self, client, userdata, msg):
        with self.app.app_context():
            self.pipeline.handle(msg.topic, msg.payload)

    def start(self) -> None:
        host, port = self.app.config["MQTT_HOST"], self.app.config["MQTT_PORT"]
        logger.info("Connecting to MQTT broker %s:%s", host, port)
        self.client.connect_async(host, port, keepalive=self.app.config["MQTT_KEEPALIVE"])
        self.client.loop_start()

    def stop(self) -> None:
        self.client.disconnect()
        self.client.loop_stop()
