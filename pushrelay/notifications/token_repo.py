"""Repository helpers for device token persistence in Firestore."""

from __future__ import annotations

from collections.abc import Callable

from google.cloud.firestore import SERVER_TIMESTAMP, ArrayUnion
from google.cloud.firestore import Client as FirestoreClient

from pushrelay.core.firebase import get_firestore_client
from pushrelay.notifications.contracts import TokenStoreError

USERS_COLLECTION = "users"
TOKENS_FIELD = "fcmTokens"


class FirestoreTokenRepository:
  """Persist device tokens on per-user documents in the `users` collection."""

  def __init__(self, *, client_provider: Callable[[], FirestoreClient | None] = get_firestore_client, collection: str = USERS_COLLECTION) -> None:
    self._client_provider = client_provider
    self._collection = collection

  def _client(self) -> FirestoreClient:
    client = self._client_provider()
    if client is None:
      raise TokenStoreError("Firestore client is unavailable")
    return client

  def add_token(self, *, user_id: str, token: str, role: str) -> None:
    """Union the token into the user's token array, creating the document on first write."""
    document = self._client().collection(self._collection).document(user_id)
    try:
      # Merge so existing tokens and unrelated fields survive; ArrayUnion keeps each token once.
      document.set({TOKENS_FIELD: ArrayUnion([token]), "role": role, "updatedAt": SERVER_TIMESTAMP}, merge=True)
    except Exception as exc:  # noqa: BLE001
      raise TokenStoreError(f"Failed to save token for user {user_id}") from exc

  def get_tokens(self, *, user_id: str) -> list[str]:
    """Read the user's token array; missing documents and fields read as empty."""
    document = self._client().collection(self._collection).document(user_id)
    try:
      snapshot = document.get()
    except Exception as exc:  # noqa: BLE001
      raise TokenStoreError(f"Failed to read tokens for user {user_id}") from exc

    data = snapshot.to_dict() if snapshot.exists else None
    tokens = (data or {}).get(TOKENS_FIELD) or []
    return [str(token) for token in tokens]
