import os

from dotenv import load_dotenv

load_dotenv()


def env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///patient_monitoring.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-prod")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))

    # ThingSpeak MQTT broker
    TELEMETRY_ENABLED = env_flag("TELEMETRY_ENABLED")
    MQTT_HOST = os.getenv("MQTT_HOST", "mqtt3.thingspeak.com")
    MQTT_PORT = int(os.getenv("MQTT_PORT", "1883"))
    MQTT_KEEPALIVE = int(os.getenv("MQTT_KEEPALIVE", "60"))
    MQTT_CLIENT_ID = os.getenv("MQTT_CLIENT_ID", "")
    MQTT_TOPIC = os.getenv("MQTT_TOPIC", "channels/+/subscribe/fields/+")
    THINGSPEAK_MQTT_USERNAME = os.getenv("THINGSPEAK_MQTT_USERNAME", "your_mqtt_username")
    THINGSPEAK_MQTT_PASSWORD = os.getenv("THINGSPEAK_MQTT_PASSWORD", "your_mqtt_password")

    # Readings
    READING_WINDOW_SECONDS = int(os.getenv("READING_WINDOW_SECONDS", "60"))
    READINGS_LIMIT = int(os.getenv("READINGS_LIMIT", "100"))

    SEED_SAMPLE_DATA = env_flag("SEED_SAMPLE_DATA")


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    TELEMETRY_ENABLED = False
    SEED_SAMPLE_DATA = False
    LOG_LEVEL = "DEBUG"
