"""Push notification delivery implementations."""

from __future__ import annotations

import logging

from firebase_admin import exceptions as firebase_exceptions
from firebase_admin import messaging

from pushrelay.notifications.contracts import ANDROID_CHANNEL_ID, MulticastResult, PushDeliveryError, PushMessage, PushSender

logger = logging.getLogger(__name__)


def build_token_messages(*, tokens: list[str], message: PushMessage) -> list[messaging.Message]:
  """Build one payload per device token; the Android channel must match the mobile client."""
  notification = messaging.Notification(title=message.title, body=message.body)
  android = messaging.AndroidConfig(notification=messaging.AndroidNotification(channel_id=ANDROID_CHANNEL_ID))
  return [messaging.Message(token=token, notification=notification, android=android, data=message.data()) for token in tokens]


def build_topic_message(*, topic: str, message: PushMessage) -> messaging.Message:
  """Build a topic broadcast payload; subscriber fan-out happens at the provider."""
  return messaging.Message(topic=topic, notification=messaging.Notification(title=message.title, body=message.body), data=message.data())


class FcmPushSender(PushSender):
  """Firebase Cloud Messaging sender backed by the Admin SDK default app."""

  def send_multicast(self, *, tokens: list[str], message: PushMessage) -> MulticastResult:
    """Send to all tokens in one batched call and return the provider's per-token counts."""
    try:
      # send_each batches per-token messages without the deprecated MulticastMessage.tokens field.
      response = messaging.send_each(build_token_messages(tokens=tokens, message=message))
    except (firebase_exceptions.FirebaseError, ValueError) as exc:
      raise PushDeliveryError(f"Multicast send failed: {exc}") from exc

    return MulticastResult(success_count=response.success_count, failure_count=response.failure_count)

  def send_to_topic(self, *, topic: str, message: PushMessage) -> str:
    """Send to a topic and return the provider message id."""
    try:
      return messaging.send(build_topic_message(topic=topic, message=message))
    except (firebase_exceptions.FirebaseError, ValueError) as exc:
      raise PushDeliveryError(f"Topic send failed: {exc}") from exc


class NullPushSender(PushSender):
  """No-op push sender used when Firebase credentials are not configured."""

  def send_multicast(self, *, tokens: list[str], message: PushMessage) -> MulticastResult:
    """Drop the notification while recording a debug log."""
    logger.debug("Push delivery disabled; dropping multicast to %d token(s)", len(tokens))
    return MulticastResult(success_count=0, failure_count=0, dropped=True)

  def send_to_topic(self, *, topic: str, message: PushMessage) -> str:
    """Drop the notification while recording a debug log."""
    logger.debug("Push delivery disabled; dropping topic send topic=%s", topic)
    return ""
