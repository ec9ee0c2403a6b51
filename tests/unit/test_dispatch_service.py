from __future__ import annotations

import logging

import pytest

from pushrelay.notifications.contracts import TokenStoreError
from pushrelay.notifications.observers import LoggingDispatchObserver
from pushrelay.notifications.push_sender import NullPushSender
from pushrelay.notifications.service import DispatchService


@pytest.mark.anyio
async def test_register_token_defaults_role(dispatch_service, token_store):
  await dispatch_service.register_token(user_id="u1", token="tok-a")
  await dispatch_service.register_token(user_id="u2", token="tok-b", role="client")

  assert token_store.add_calls == [{"user_id": "u1", "token": "tok-a", "role": "unknown"}, {"user_id": "u2", "token": "tok-b", "role": "client"}]


@pytest.mark.anyio
async def test_register_token_propagates_store_errors(dispatch_service, token_store):
  token_store.fail_writes = True

  with pytest.raises(TokenStoreError):
    await dispatch_service.register_token(user_id="u1", token="tok-a")


@pytest.mark.anyio
async def test_send_to_user_without_tokens_skips_provider(dispatch_service, push_sender, observer):
  result = await dispatch_service.send_to_user(user_id="u1", title="t", body="b")

  assert result.status == "skipped"
  assert push_sender.multicasts == []
  assert observer.failures == []
  assert observer.delivered == []


@pytest.mark.anyio
async def test_send_to_user_multicasts_all_tokens(dispatch_service, token_store, push_sender, observer):
  token_store.records["u1"] = {"fcmTokens": ["tok-a", "tok-b"]}

  result = await dispatch_service.send_to_user(user_id="u1", title="Hello", body="World", screen=None, type=None)

  assert result.status == "sent"
  assert result.success_count == 2
  tokens, message = push_sender.multicasts[0]
  assert tokens == ["tok-a", "tok-b"]
  assert (message.title, message.body, message.screen, message.type) == ("Hello", "World", "HomeScreen", "GENERAL")
  assert observer.delivered == [("user u1", "2 succeeded, 0 failed")]


@pytest.mark.anyio
async def test_send_to_user_swallows_lookup_failure(dispatch_service, token_store, push_sender, observer):
  token_store.failing_reads.add("u1")

  result = await dispatch_service.send_to_user(user_id="u1", title="t", body="b")

  assert result.status == "failed"
  assert "read failed" in (result.error or "")
  assert push_sender.multicasts == []
  assert isinstance(observer.failures[0][1], TokenStoreError)


@pytest.mark.anyio
async def test_send_to_user_swallows_delivery_failure(dispatch_service, token_store, push_sender, observer):
  token_store.records["u1"] = {"fcmTokens": ["bad", "good"]}
  push_sender.failing_tokens.add("bad")

  result = await dispatch_service.send_to_user(user_id="u1", title="t", body="b")

  assert result.status == "failed"
  assert result.failure_count == 2
  assert observer.failures[0][0] == "user u1"


@pytest.mark.anyio
async def test_send_to_users_runs_sequentially_and_continues_after_failure(dispatch_service, token_store, push_sender, events):
  token_store.records["u1"] = {"fcmTokens": ["tok-1"]}
  token_store.records["u2"] = {"fcmTokens": ["bad"]}
  token_store.records["u4"] = {"fcmTokens": ["tok-4"]}
  token_store.failing_reads.add("u3")
  push_sender.failing_tokens.add("bad")

  results = await dispatch_service.send_to_users(user_ids=["u1", "u2", "u3", "u4", "u5"], title="t", body="b")

  assert [(result.user_id, result.status) for result in results] == [("u1", "sent"), ("u2", "failed"), ("u3", "failed"), ("u4", "sent"), ("u5", "skipped")]
  # Each user's lookup and send completes before the next user's lookup starts.
  assert events == [("lookup", "u1"), ("send", "tok-1"), ("lookup", "u2"), ("send", "bad"), ("lookup", "u3"), ("lookup", "u4"), ("send", "tok-4"), ("lookup", "u5")]


@pytest.mark.anyio
async def test_send_to_topic_reports_outcome(dispatch_service, push_sender, observer):
  assert await dispatch_service.send_to_topic(topic="news", title="t", body="b", screen="NewsScreen") is True
  topic, message = push_sender.topics[0]
  assert topic == "news"
  assert message.data() == {"screen": "NewsScreen", "type": "GENERAL"}
  assert observer.delivered == [("topic news", "projects/demo/messages/1")]

  push_sender.fail_topics = True
  assert await dispatch_service.send_to_topic(topic="news", title="t", body="b") is False
  assert observer.failures[0][0] == "topic news"


@pytest.mark.anyio
async def test_disabled_push_reports_drops_instead_of_deliveries(token_store, observer):
  service = DispatchService(token_store=token_store, push_sender=NullPushSender(), observer=observer)
  token_store.records["u1"] = {"fcmTokens": ["tok-a"]}

  result = await service.send_to_user(user_id="u1", title="t", body="b")
  sent = await service.send_to_topic(topic="news", title="t", body="b")

  assert result.status == "skipped"
  assert result.error == "push delivery disabled"
  assert sent is False
  assert observer.dropped == ["user u1", "topic news"]
  assert observer.delivered == []


def test_logging_observer_marks_dropped_messages(caplog):
  caplog.set_level(logging.INFO, logger="pushrelay.notifications")

  LoggingDispatchObserver().on_dropped(target="topic news")

  record = caplog.records[-1]
  assert record.levelno == logging.WARNING
  assert "dropped" in record.getMessage()
  assert "sent" not in record.getMessage()
