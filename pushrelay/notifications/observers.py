"""Dispatch observers."""

from __future__ import annotations

import logging

from pushrelay.notifications.contracts import DispatchObserver, NotificationError


class LoggingDispatchObserver(DispatchObserver):
  """Write dispatch outcomes to the notifications logger."""

  def __init__(self, logger: logging.Logger | None = None) -> None:
    self._logger = logger or logging.getLogger("pushrelay.notifications")

  def on_delivered(self, *, target: str, detail: str) -> None:
    self._logger.info("Notification sent to %s: %s", target, detail)

  def on_failure(self, *, target: str, error: Exception) -> None:
    # Provider and store errors are expected at runtime; keep tracebacks for everything else.
    if isinstance(error, NotificationError):
      self._logger.error("Error sending notification to %s: %s", target, error)
    else:
      self._logger.error("Error sending notification to %s: %s", target, error, exc_info=error)

  def on_dropped(self, *, target: str) -> None:
    self._logger.warning("Push delivery disabled; notification to %s dropped", target)
