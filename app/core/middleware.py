from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.firebase import verify_firebase_token
from app.services.user_service import UserService
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> dict:
    """
    Dependency to get current authenticated user from Firebase token.
    Protects routes that require authentication.
    """
    logger.info("get_current_user: Entry")

    if credentials is None or not credentials.credentials:
        logger.warning("get_current_user: No bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        decoded_token = verify_firebase_token(credentials.credentials)
        user_id = decoded_token.get('uid')

        if not user_id:
            raise ValueError("Token carries no uid")

        logger.info(f"get_current_user: Success - {user_id}")
        return {
            'uid': user_id,
            'email': decoded_token.get('email'),
            'name': decoded_token.get('name'),
            'token': decoded_token
        }
    except Exception as e:
        logger.error(f"get_current_user: Failure - {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_account(
    current_user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    """
    Resolve the caller's role and plan, provisioning the user row and its
    free subscription on first sight.
    """
    user = UserService().ensure_user(
        db,
        current_user['uid'],
        email=current_user.get('email'),
        name=current_user.get('name'),
    )
    return {
        'uid': user.id,
        'email': user.email,
        'role': user.role,
        'plan': user.plan,
    }


def is_admin(account: dict) -> bool:
    return account.get('role') == 'admin'
