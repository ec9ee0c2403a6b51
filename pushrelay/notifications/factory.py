"""Factory helpers for the dispatch service."""

from __future__ import annotations

from pushrelay.config import Settings
from pushrelay.core.firebase import initialize_firebase
from pushrelay.notifications.contracts import PushSender
from pushrelay.notifications.push_sender import FcmPushSender, NullPushSender
from pushrelay.notifications.service import DispatchService
from pushrelay.notifications.token_repo import FirestoreTokenRepository


def build_dispatch_service(settings: Settings) -> DispatchService:
  """Construct a dispatch service based on environment configuration."""
  # Push stays disabled unless credentials were supplied and the SDK came up.
  if settings.push_configured and initialize_firebase(settings):
    push_sender: PushSender = FcmPushSender()
  else:
    push_sender = NullPushSender()

  return DispatchService(token_store=FirestoreTokenRepository(), push_sender=push_sender)
