"""Shared fakes and fixtures for the relay tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from pushrelay.api.deps import get_dispatch_service
from pushrelay.config import get_settings
from pushrelay.main import app
from pushrelay.notifications.contracts import MulticastResult, PushMessage, TokenStoreError
from pushrelay.notifications.service import DispatchService


@pytest.fixture
def anyio_backend():
  return "asyncio"


class FakeTokenStore:
  """In-memory stand-in for Firestore with array-union semantics."""

  def __init__(self, events: list[tuple[str, str]] | None = None) -> None:
    self.records: dict[str, dict] = {}
    self.add_calls: list[dict[str, str]] = []
    self.failing_reads: set[str] = set()
    self.fail_writes = False
    self.events = events if events is not None else []

  def add_token(self, *, user_id: str, token: str, role: str) -> None:
    if self.fail_writes:
      raise TokenStoreError("firestore unavailable")
    self.add_calls.append({"user_id": user_id, "token": token, "role": role})
    record = self.records.setdefault(user_id, {"fcmTokens": []})
    if token not in record["fcmTokens"]:
      record["fcmTokens"].append(token)
    record["role"] = role

  def get_tokens(self, *, user_id: str) -> list[str]:
    self.events.append(("lookup", user_id))
    if user_id in self.failing_reads:
      raise TokenStoreError(f"read failed for {user_id}")
    return list(self.records.get(user_id, {}).get("fcmTokens", []))


class RecordingPushSender:
  """Push sender that records every call and can fail on selected tokens or topics."""

  def __init__(self, events: list[tuple[str, str]] | None = None) -> None:
    self.multicasts: list[tuple[list[str], PushMessage]] = []
    self.topics: list[tuple[str, PushMessage]] = []
    self.failing_tokens: set[str] = set()
    self.fail_topics = False
    self.events = events if events is not None else []

  def send_multicast(self, *, tokens: list[str], message: PushMessage) -> MulticastResult:
    self.events.append(("send", ",".join(tokens)))
    if self.failing_tokens.intersection(tokens):
      raise RuntimeError("provider rejected the batch")
    self.multicasts.append((list(tokens), message))
    return MulticastResult(success_count=len(tokens), failure_count=0)

  def send_to_topic(self, *, topic: str, message: PushMessage) -> str:
    if self.fail_topics:
      raise RuntimeError("topic send failed")
    self.topics.append((topic, message))
    return f"projects/demo/messages/{len(self.topics)}"


class RecordingObserver:
  def __init__(self) -> None:
    self.delivered: list[tuple[str, str]] = []
    self.failures: list[tuple[str, Exception]] = []
    self.dropped: list[str] = []

  def on_delivered(self, *, target: str, detail: str) -> None:
    self.delivered.append((target, detail))

  def on_failure(self, *, target: str, error: Exception) -> None:
    self.failures.append((target, error))

  def on_dropped(self, *, target: str) -> None:
    self.dropped.append(target)


@pytest.fixture
def events() -> list[tuple[str, str]]:
  return []


@pytest.fixture
def token_store(events) -> FakeTokenStore:
  return FakeTokenStore(events)


@pytest.fixture
def push_sender(events) -> RecordingPushSender:
  return RecordingPushSender(events)


@pytest.fixture
def observer() -> RecordingObserver:
  return RecordingObserver()


@pytest.fixture
def dispatch_service(token_store, push_sender, observer) -> DispatchService:
  return DispatchService(token_store=token_store, push_sender=push_sender, observer=observer)


@pytest.fixture
def client(dispatch_service):
  app.dependency_overrides[get_dispatch_service] = lambda: dispatch_service
  try:
    yield TestClient(app)
  finally:
    app.dependency_overrides.clear()


@pytest.fixture
def clean_settings(monkeypatch):
  """Reset the cached settings around a test that changes the environment."""
  for name in ("PORT", "RELAY_HOST", "RELAY_ENV", "RELAY_LOG_LEVEL", "RELAY_LOG_DIR", "RELAY_LOG_MAX_BYTES", "RELAY_LOG_BACKUP_COUNT", "RELAY_LOG_HTTP_4XX", "RELAY_SCHEDULER_ENABLED", "FIREBASE_SERVICE_ACCOUNT"):
    monkeypatch.delenv(name, raising=False)
  get_settings.cache_clear()
  yield monkeypatch
  get_settings.cache_clear()
