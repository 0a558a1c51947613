from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.errors import server_error
from app.core.middleware import get_current_account
from app.models.subscription import Subscription
from app.models.user import User
from app.schemas.common import envelope
from app.schemas.subscription import SubscriptionOut
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/me")
async def get_me(
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
):
    """The caller's user record and subscription"""
    logger.info(f"get_me: Entry - user: {account['uid']}")

    try:
        user = db.query(User).filter(User.id == account['uid']).first()
        subscription = db.query(Subscription).filter(Subscription.user_id == account['uid']).first()
        return envelope({
            "id": user.id,
            "email": user.email,
            "firstName": user.first_name,
            "lastName": user.last_name,
            "role": user.role,
            "plan": user.plan,
            "createdAt": user.created_at.isoformat() if user.created_at else None,
            "subscription": SubscriptionOut.model_validate(subscription).to_json() if subscription else None,
        })
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_me: Failure - {e}")
        raise server_error(e)
