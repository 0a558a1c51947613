from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from app.models.business import Business
from app.schemas.business import BusinessCreate, BusinessUpdate
from app.services.quota_service import QuotaService
from app.services.telemetry_service import TelemetryService
import uuid
import logging

logger = logging.getLogger(__name__)


class BusinessService:
    def __init__(self):
        self.quota_service = QuotaService()
        self.telemetry = TelemetryService()
        self.logger = logging.getLogger(__name__)

    def get_business(self, db: Session, business_id: str, user_id: str, role: str = 'user') -> Business:
        """Get a business and verify ownership (admins may read any business)"""
        self.logger.info(f"get_business: Entry - business: {business_id}, user: {user_id}")

        business = db.query(Business).filter(Business.id == business_id).first()

        if not business:
            self.logger.warning(f"get_business: Not found - {business_id}")
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found"
            )

        if business.user_id != user_id and role != 'admin':
            self.logger.warning(f"get_business: Forbidden - business: {business_id}, user: {user_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not authorized to access this business"
            )

        self.logger.info(f"get_business: Success - {business_id}")
        return business

    def get_business_by_id(self, db: Session, business_id: str) -> Business:
        """Get a business without an ownership check (public flows)"""
        business = db.query(Business).filter(Business.id == business_id).first()
        if not business:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Business not found"
            )
        return business

    def list_businesses(self, db: Session, user_id: str) -> list[Business]:
        self.logger.info(f"list_businesses: Entry - user: {user_id}")

        try:
            businesses = db.query(Business).filter(
                Business.user_id == user_id
            ).order_by(Business.created_at.desc()).all()

            self.logger.info(f"list_businesses: Success - {len(businesses)} businesses")
            return businesses
        except Exception as e:
            self.telemetry.log_failure(action='list_businesses', error=str(e), user_id=user_id)
            self.logger.error(f"list_businesses: Failure - {e}")
            raise

    def create_business(self, db: Session, user_id: str, payload: BusinessCreate) -> Business:
        """Create a business; free plan owners are limited to one"""
        self.logger.info(f"create_business: Entry - user: {user_id}, name: {payload.name}")

        try:
            self.quota_service.check_business_quota(db, user_id)

            business = Business(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=payload.name,
                description=payload.description,
                category=payload.category.value,
                address=payload.address.model_dump(by_alias=True, exclude_none=True) if payload.address else None,
                contact_info=payload.contact_info.model_dump(by_alias=True, exclude_none=True) if payload.contact_info else None,
                social_profiles=payload.social_profiles.model_dump(by_alias=True, exclude_none=True) if payload.social_profiles else None,
                logo=payload.logo,
                cover_image=payload.cover_image,
                active=payload.active
            )
            db.add(business)
            db.commit()
            db.refresh(business)

            self.telemetry.log_success(
                action='create_business',
                user_id=user_id,
                parameters={'business_id': business.id, 'category': business.category}
            )
            self.logger.info(f"create_business: Success - business: {business.id}")
            return business
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='create_business', error=str(e), user_id=user_id)
            self.logger.error(f"create_business: Failure - {e}")
            raise

    def update_business(
        self,
        db: Session,
        business_id: str,
        user_id: str,
        payload: BusinessUpdate,
        role: str = 'user'
    ) -> Business:
        self.logger.info(f"update_business: Entry - business: {business_id}, user: {user_id}")

        try:
            business = self.get_business(db, business_id, user_id, role)

            changes = payload.model_dump(exclude_unset=True)
            for field, value in changes.items():
                if field == 'category' and value is not None:
                    value = payload.category.value
                elif field in ('address', 'contact_info', 'social_profiles') and value is not None:
                    value = getattr(payload, field).model_dump(by_alias=True, exclude_none=True)
                elif field == 'name' and value is None:
                    continue
                setattr(business, field, value)

            db.commit()
            db.refresh(business)

            self.telemetry.log_success(
                action='update_business',
                user_id=user_id,
                parameters={'business_id': business_id, 'fields': sorted(changes)}
            )
            self.logger.info(f"update_business: Success - {business_id}")
            return business
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='update_business', error=str(e), user_id=user_id)
            self.logger.error(f"update_business: Failure - {e}")
            raise

    def delete_business(self, db: Session, business_id: str, user_id: str, role: str = 'user'):
        """Delete a business; its review requests and feedback are left in place"""
        self.logger.info(f"delete_business: Entry - business: {business_id}, user: {user_id}")

        try:
            business = self.get_business(db, business_id, user_id, role)
            db.delete(business)
            db.commit()

            self.telemetry.log_success(
                action='delete_business',
                user_id=user_id,
                parameters={'business_id': business_id}
            )
            self.logger.info(f"delete_business: Success - {business_id}")
        except HTTPException:
            raise
        except Exception as e:
            db.rollback()
            self.telemetry.log_failure(action='delete_business', error=str(e), user_id=user_id)
            self.logger.error(f"delete_business: Failure - {e}")
            raise
