"""Notification relay: device token registration and push dispatch over FCM."""

__version__ = "0.1.0"
