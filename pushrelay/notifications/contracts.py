"""Contracts for token storage, push delivery and dispatch observation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

DEFAULT_SCREEN = "HomeScreen"
DEFAULT_TYPE = "GENERAL"
DEFAULT_ROLE = "unknown"
ANDROID_CHANNEL_ID = "high_importance_channel"

DispatchStatus = Literal["sent", "skipped", "failed"]


@dataclass(frozen=True)
class PushMessage:
  """Represents a push notification payload, built per dispatch and never stored."""

  title: str
  body: str
  screen: str = DEFAULT_SCREEN
  type: str = DEFAULT_TYPE

  @classmethod
  def build(cls, *, title: str, body: str, screen: str | None = None, type: str | None = None) -> PushMessage:  # noqa: A002
    """Build a message, falling back to the default screen and type for empty values."""
    return cls(title=title, body=body, screen=screen or DEFAULT_SCREEN, type=type or DEFAULT_TYPE)

  def data(self) -> dict[str, str]:
    """Return the routing hints sent alongside the visible notification."""
    return {"screen": self.screen, "type": self.type}


@dataclass(frozen=True)
class MulticastResult:
  """Per-call delivery counts reported by the push provider."""

  success_count: int
  failure_count: int
  dropped: bool = False


@dataclass(frozen=True)
class DispatchResult:
  """Outcome of dispatching a message to one user."""

  user_id: str
  status: DispatchStatus
  success_count: int = 0
  failure_count: int = 0
  error: str | None = None


class NotificationError(Exception):
  """Base class for all relay failures."""


class TokenStoreError(NotificationError):
  """Raised when the token store is unavailable or a read/write fails."""


class PushDeliveryError(NotificationError):
  """Raised when the push provider rejects or fails a send."""


class TokenStore(Protocol):
  """Persistence contract for per-user device tokens."""

  def add_token(self, *, user_id: str, token: str, role: str) -> None:
    """Merge a token into the user's token set and stamp the update time."""

  def get_tokens(self, *, user_id: str) -> list[str]:
    """Return the user's stored tokens, or an empty list when none exist."""


class PushSender(Protocol):
  """Delivery contract for the push provider."""

  def send_multicast(self, *, tokens: list[str], message: PushMessage) -> MulticastResult:
    """Send one message to many device tokens in a single call."""

  def send_to_topic(self, *, topic: str, message: PushMessage) -> str:
    """Send one message to a topic and return the provider message id, or "" when dropped."""


class DispatchObserver(Protocol):
  """Receives dispatch outcomes that are never surfaced to HTTP callers."""

  def on_delivered(self, *, target: str, detail: str) -> None:
    """Record a completed send."""

  def on_failure(self, *, target: str, error: Exception) -> None:
    """Record a failed lookup or send."""

  def on_dropped(self, *, target: str) -> None:
    """Record a message discarded because push delivery is disabled."""
