import logging

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore import Client as FirestoreClient

from pushrelay.config import Settings, get_settings

logger = logging.getLogger(__name__)


def initialize_firebase(settings: Settings | None = None) -> bool:
  """Initializes the Firebase Admin SDK from the service account JSON blob."""
  if firebase_admin._apps:
    return True

  settings = settings or get_settings()
  if settings.firebase_service_account is None:
    logger.warning("FIREBASE_SERVICE_ACCOUNT not set. Firebase Admin SDK not initialized.")
    return False

  try:
    cred = credentials.Certificate(settings.firebase_service_account)
    firebase_admin.initialize_app(cred)
    logger.info("Firebase Admin SDK initialized for project %s.", settings.firebase_service_account.get("project_id", "<unknown>"))
    return True
  except Exception as e:
    logger.error(f"Failed to initialize Firebase Admin SDK: {e}")
    return False


def get_firestore_client() -> FirestoreClient | None:
  """Returns a Firestore client instance. Lazily initializes if needed."""
  if not firebase_admin._apps and not initialize_firebase():
    return None

  try:
    return firestore.client()
  except Exception as e:
    logger.error(f"Failed to get Firestore client: {e}")
    return None
