"""Routes for device token registration and notification dispatch."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from pushrelay.api.deps import get_dispatch_service
from pushrelay.notifications.service import DispatchService

logger = logging.getLogger(__name__)

router = APIRouter(default_response_class=PlainTextResponse)


# Fields are optional so that missing values produce the plain-text 400s below instead of validation errors.
class RegisterTokenRequest(BaseModel):
  """Device token registration payload; presence is checked in the route."""

  user_id: str | None = Field(default=None, alias="userId")
  token: str | None = None
  role: str | None = None
  model_config = ConfigDict(populate_by_name=True)


class _MessageFields(BaseModel):
  """Message fields shared by every send route."""

  title: str | None = None
  body: str | None = None
  screen: str | None = None
  type: str | None = None
  model_config = ConfigDict(populate_by_name=True)


class SendToUserRequest(_MessageFields):
  user_id: str | None = Field(default=None, alias="userId")


class SendToTopicRequest(_MessageFields):
  topic: str | None = None


class SendToUsersRequest(_MessageFields):
  user_ids: list[str] | None = Field(default=None, alias="userIds")


def _missing_fields() -> HTTPException:
  return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing fields")


@router.post("/register-token")
async def register_token(payload: RegisterTokenRequest, service: DispatchService = Depends(get_dispatch_service)) -> str:  # noqa: B008
  """Merge a device token into the user's record."""
  # Empty strings count as missing.
  if not payload.user_id or not payload.token:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing userId or token")

  # Store failures are the only errors a caller sees.
  try:
    await service.register_token(user_id=payload.user_id, token=payload.token, role=payload.role)
  except Exception as exc:  # noqa: BLE001
    logger.error("Error saving token user_id=%s error=%s", payload.user_id, exc, exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Error saving token") from exc

  return "Token registered successfully"


@router.post("/send-to-user")
async def send_to_user(payload: SendToUserRequest, service: DispatchService = Depends(get_dispatch_service)) -> str:  # noqa: B008
  """Send to every device of one user; delivery failures do not change the response."""
  if not payload.user_id or not payload.title or not payload.body:
    raise _missing_fields()

  # Outcome goes to the observer; the response is fixed once the request is valid.
  await service.send_to_user(user_id=payload.user_id, title=payload.title, body=payload.body, screen=payload.screen, type=payload.type)
  return "Notification sent to user"


@router.post("/send-to-topic")
async def send_to_topic(payload: SendToTopicRequest, service: DispatchService = Depends(get_dispatch_service)) -> str:  # noqa: B008
  """Broadcast to a topic; delivery failures do not change the response."""
  if not payload.topic or not payload.title or not payload.body:
    raise _missing_fields()

  # One provider call; subscribers are resolved by FCM.
  await service.send_to_topic(topic=payload.topic, title=payload.title, body=payload.body, screen=payload.screen, type=payload.type)
  return "Notification sent to topic"


@router.post("/send-to-users")
async def send_to_users(payload: SendToUsersRequest, service: DispatchService = Depends(get_dispatch_service)) -> str:  # noqa: B008
  """Send to each listed user in turn."""
  # An empty list is accepted as a no-op; only an absent list is rejected.
  if payload.user_ids is None or not payload.title or not payload.body:
    raise _missing_fields()

  # Users are dispatched one after another before the response goes out.
  await service.send_to_users(user_ids=payload.user_ids, title=payload.title, body=payload.body, screen=payload.screen, type=payload.type)
  return "Notification sent to multiple users"
