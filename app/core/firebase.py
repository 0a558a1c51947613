import firebase_admin
from firebase_admin import credentials, auth, firestore
from app.core.config import settings
import logging

logger = logging.getLogger(__name__)


def init_firebase():
    """Initialize Firebase Admin SDK"""
    logger.info("init_firebase: Entry")

    if not settings.firebase_credentials_path:
        if settings.is_production:
            raise RuntimeError("FIREBASE_CREDENTIALS_PATH is required in production")
        logger.warning("init_firebase: No credentials configured - token verification disabled")
        return

    try:
        if not firebase_admin._apps:
            cred = credentials.Certificate(settings.firebase_credentials_path)
            firebase_admin.initialize_app(cred, {
                'projectId': settings.firebase_project_id,
            })
            logger.info("init_firebase: Success")
        else:
            logger.info("init_firebase: Already initialized")
    except Exception as e:
        logger.error(f"init_firebase: Failure - {e}")
        raise


def verify_firebase_token(token: str) -> dict:
    """Verify Firebase JWT token and return decoded token"""
    logger.info("verify_firebase_token: Entry")

    try:
        decoded_token = auth.verify_id_token(token)
        logger.info(f"verify_firebase_token: Success - {decoded_token.get('uid')}")
        return decoded_token
    except Exception as e:
        logger.error(f"verify_firebase_token: Failure - {e}")
        raise


def get_firestore_client():
    """Get Firestore client instance, or None when Firebase is not initialized"""
    if not firebase_admin._apps:
        return None
    return firestore.client()
