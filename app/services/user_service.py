from sqlalchemy.orm import Session
from app.models.user import User
from app.models.subscription import Subscription
from app.services.subscription_service import new_free_subscription
from app.services.telemetry_service import TelemetryService
import logging

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self):
        self.telemetry = TelemetryService()
        self.logger = logging.getLogger(__name__)

    def ensure_user(self, db: Session, user_id: str, email: str = None, name: str = None) -> User:
        """
        Get the user row for a verified identity, provisioning it on first
        sight together with a free subscription.
        """
        self.logger.info(f"ensure_user: Entry - user: {user_id}")

        try:
            user = db.query(User).filter(User.id == user_id).first()
            created = False
            if not user:
                first_name, _, last_name = (name or "").partition(" ")
                user = User(
                    id=user_id,
                    email=email or None,
                    first_name=first_name or None,
                    last_name=last_name or None,
                    role='user',
                    plan='free',
                    is_active=True
                )
                db.add(user)
                db.flush()
                created = True
            elif email and not user.email:
                user.email = email

            subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
            if not subscription:
                db.add(new_free_subscription(user_id))
                created = True

            db.commit()
            db.refresh(user)

            if created:
                self.telemetry.log_success(action='provision_user', user_id=user_id)
                self.logger.info(f"ensure_user: Provisioned - user: {user_id}")
            self.logger.info(f"ensure_user: Success - user: {user_id}, role: {user.role}, plan: {user.plan}")
            return user
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='ensure_user', error=str(e), user_id=user_id)
            self.logger.error(f"ensure_user: Failure - {e}")
            raise

    def get_user(self, db: Session, user_id: str) -> User:
        return db.query(User).filter(User.id == user_id).first()
