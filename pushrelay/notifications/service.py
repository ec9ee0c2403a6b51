"""Notification dispatch for registered devices and topics."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from starlette.concurrency import run_in_threadpool

from pushrelay.notifications.contracts import DEFAULT_ROLE, DispatchObserver, DispatchResult, PushMessage, PushSender, TokenStore
from pushrelay.notifications.observers import LoggingDispatchObserver

logger = logging.getLogger(__name__)


class DispatchService:
  """Registers device tokens and relays messages to the push provider."""

  def __init__(self, *, token_store: TokenStore, push_sender: PushSender, observer: DispatchObserver | None = None) -> None:
    self._token_store = token_store
    self._push_sender = push_sender
    self._observer = observer or LoggingDispatchObserver()

  async def register_token(self, *, user_id: str, token: str, role: str | None = None) -> None:
    """Merge a device token into the user's record; store errors propagate to the caller."""
    # The Firestore SDK is blocking, so keep the write off the event loop.
    await run_in_threadpool(self._token_store.add_token, user_id=user_id, token=token, role=role or DEFAULT_ROLE)

  async def send_to_user(self, *, user_id: str, title: str, body: str, screen: str | None = None, type: str | None = None) -> DispatchResult:  # noqa: A002
    """Send a message to every token the user has registered.

    Users without tokens are skipped without contacting the provider. Lookup
    and delivery failures go to the observer and come back as a failed result;
    they are never raised.
    """
    target = f"user {user_id}"
    # Read the token set first; a failed lookup ends this user's dispatch only.
    try:
      tokens = await run_in_threadpool(self._token_store.get_tokens, user_id=user_id)
    except Exception as exc:  # noqa: BLE001
      self._observer.on_failure(target=target, error=exc)
      return DispatchResult(user_id=user_id, status="failed", error=str(exc))

    # No registered devices means nothing to send and no provider call.
    if not tokens:
      logger.debug("No tokens registered for user %s; skipping dispatch", user_id)
      return DispatchResult(user_id=user_id, status="skipped")

    # Build the payload with screen/type defaults applied.
    message = PushMessage.build(title=title, body=body, screen=screen, type=type)
    # Send every token in one batched provider call.
    try:
      result = await run_in_threadpool(self._push_sender.send_multicast, tokens=tokens, message=message)
    except Exception as exc:  # noqa: BLE001
      self._observer.on_failure(target=target, error=exc)
      return DispatchResult(user_id=user_id, status="failed", failure_count=len(tokens), error=str(exc))

    # A disabled sender accepts the call but delivers nothing.
    if result.dropped:
      self._observer.on_dropped(target=target)
      return DispatchResult(user_id=user_id, status="skipped", error="push delivery disabled")

    self._observer.on_delivered(target=target, detail=f"{result.success_count} succeeded, {result.failure_count} failed")
    return DispatchResult(user_id=user_id, status="sent", success_count=result.success_count, failure_count=result.failure_count)

  async def send_to_topic(self, *, topic: str, title: str, body: str, screen: str | None = None, type: str | None = None) -> bool:  # noqa: A002
    """Broadcast a message to a topic. Returns False when the send failed or was dropped."""
    target = f"topic {topic}"
    message = PushMessage.build(title=title, body=body, screen=screen, type=type)
    # Subscriber fan-out happens at the provider; this is a single send.
    try:
      message_id = await run_in_threadpool(self._push_sender.send_to_topic, topic=topic, message=message)
    except Exception as exc:  # noqa: BLE001
      self._observer.on_failure(target=target, error=exc)
      return False

    # An empty message id means the sender discarded the message.
    if not message_id:
      self._observer.on_dropped(target=target)
      return False

    self._observer.on_delivered(target=target, detail=message_id)
    return True

  async def send_to_users(self, *, user_ids: Iterable[str], title: str, body: str, screen: str | None = None, type: str | None = None) -> list[DispatchResult]:  # noqa: A002
    """Dispatch to each user in order, awaiting one before starting the next."""
    results: list[DispatchResult] = []
    # Await each user in turn; send_to_user never raises, so one failure cannot stop the loop.
    for user_id in user_ids:
      results.append(await self.send_to_user(user_id=user_id, title=title, body=body, screen=screen, type=type))

    # Summarize partial failures once instead of per user.
    failed = sum(1 for result in results if result.status == "failed")
    if failed:
      logger.warning("Multi-user dispatch finished with %d failure(s) out of %d user(s)", failed, len(results))
    return results
