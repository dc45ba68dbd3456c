"""MQTT packet building and session framing, HTTP request helpers and a lenient base64 decoder."""

__version__ = "0.1.0"

__all__ = ["base64dec", "httpd_util", "mqtt_msg", "mqtt_session"]