from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.errors import server_error
from app.core.middleware import get_current_account
from app.schemas.business import BusinessCreate, BusinessUpdate, BusinessOut
from app.schemas.common import envelope
from app.services.business_service import BusinessService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_business_service() -> BusinessService:
    """Dependency to get business service instance"""
    return BusinessService()


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
async def create_business(
    business_data: BusinessCreate,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: BusinessService = Depends(get_business_service),
):
    """Create a business (free plan: one per owner)"""
    logger.info(f"create_business: Entry - user: {account['uid']}, name: {business_data.name}")

    try:
        business = service.create_business(db, account['uid'], business_data)
        logger.info(f"create_business: Success - business: {business.id}")
        return envelope(BusinessOut.model_validate(business).to_json())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"create_business: Failure - {e}")
        raise server_error(e)


@router.get("")
@router.get("/", include_in_schema=False)
async def list_businesses(
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: BusinessService = Depends(get_business_service),
):
    """List the caller's businesses"""
    logger.info(f"list_businesses: Entry - user: {account['uid']}")

    try:
        businesses = service.list_businesses(db, account['uid'])
        logger.info(f"list_businesses: Success - {len(businesses)} businesses")
        return envelope(
            [BusinessOut.model_validate(b).to_json() for b in businesses],
            count=len(businesses)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"list_businesses: Failure - {e}")
        raise server_error(e)


@router.get("/{business_id}")
async def get_business(
    business_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: BusinessService = Depends(get_business_service),
):
    logger.info(f"get_business: Entry - user: {account['uid']}, business: {business_id}")

    try:
        business = service.get_business(db, business_id, account['uid'], account['role'])
        return envelope(BusinessOut.model_validate(business).to_json())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_business: Failure - {e}")
        raise server_error(e)


@router.put("/{business_id}")
async def update_business(
    business_id: str,
    business_data: BusinessUpdate,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: BusinessService = Depends(get_business_service),
):
    logger.info(f"update_business: Entry - user: {account['uid']}, business: {business_id}")

    try:
        business = service.update_business(db, business_id, account['uid'], business_data, account['role'])
        logger.info(f"update_business: Success - business: {business_id}")
        return envelope(BusinessOut.model_validate(business).to_json())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"update_business: Failure - {e}")
        raise server_error(e)


@router.delete("/{business_id}")
async def delete_business(
    business_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: BusinessService = Depends(get_business_service),
):
    logger.info(f"delete_business: Entry - user: {account['uid']}, business: {business_id}")

    try:
        service.delete_business(db, business_id, account['uid'], account['role'])
        logger.info(f"delete_business: Success - business: {business_id}")
        return envelope({}, message="Business removed")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"delete_business: Failure - {e}")
        raise server_error(e)
