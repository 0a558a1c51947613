from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from app.core.cache import get_cache
from app.core.database import get_db
from app.core.errors import server_error
from app.core.middleware import get_current_account
from app.notifier.sender import get_notification_sender
from app.schemas.common import envelope
from app.schemas.review_request import (
    ReviewRequestCreate,
    ReviewRequestUpdate,
    ReviewRequestOut,
    ReviewRequestForm,
)
from app.services.review_request_service import ReviewRequestService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_review_request_service(request: Request) -> ReviewRequestService:
    """Dependency wiring the startup notification sender and the lock store"""
    return ReviewRequestService(sender=get_notification_sender(request), cache=get_cache())


def _out(review_request) -> dict:
    return ReviewRequestOut.model_validate(review_request).to_json()


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
async def create_review_request(
    request_data: ReviewRequestCreate,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    """Create a review request and send it to the customer"""
    logger.info(f"create_review_request: Entry - user: {account['uid']}, business: {request_data.business_id}")

    try:
        review_request = await service.create_and_send(
            db,
            account['uid'],
            request_data,
            role=account['role'],
            plan=account['plan']
        )
        logger.info(f"create_review_request: Success - request: {review_request.id}")
        return envelope(_out(review_request))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"create_review_request: Failure - {e}")
        raise server_error(e)


@router.get("")
@router.get("/", include_in_schema=False)
async def list_review_requests(
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    """List review requests across the caller's businesses"""
    logger.info(f"list_review_requests: Entry - user: {account['uid']}")

    try:
        requests = service.list_for_owner(db, account['uid'])
        return envelope([_out(r) for r in requests], count=len(requests))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"list_review_requests: Failure - {e}")
        raise server_error(e)


@router.get("/form/{unique_id}")
async def get_review_request_form(
    unique_id: str,
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    """
    Customer-facing form data.
    Public endpoint - no authentication required.
    """
    logger.info("get_review_request_form: Entry")

    try:
        form = service.get_form(db, unique_id)
        return envelope(ReviewRequestForm(**form).to_json())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_review_request_form: Failure - {e}")
        raise server_error(e)


@router.get("/analytics/{business_id}")
async def get_review_request_analytics(
    business_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    """30-day funnel stats for a business"""
    logger.info(f"get_review_request_analytics: Entry - user: {account['uid']}, business: {business_id}")

    try:
        analytics = service.analytics(db, business_id, account['uid'], account['role'])
        return envelope(analytics)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_review_request_analytics: Failure - {e}")
        raise server_error(e)


@router.get("/business/{business_id}")
async def list_business_review_requests(
    business_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    logger.info(f"list_business_review_requests: Entry - user: {account['uid']}, business: {business_id}")

    try:
        requests = service.list_for_business(db, business_id, account['uid'], account['role'])
        return envelope([_out(r) for r in requests], count=len(requests))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"list_business_review_requests: Failure - {e}")
        raise server_error(e)


@router.get("/{request_id}")
async def get_review_request(
    request_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    logger.info(f"get_review_request: Entry - user: {account['uid']}, request: {request_id}")

    try:
        review_request = service.get_review_request(db, request_id, account['uid'], account['role'])
        return envelope(_out(review_request))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_review_request: Failure - {e}")
        raise server_error(e)


@router.put("/{request_id}")
async def update_review_request(
    request_id: str,
    request_data: ReviewRequestUpdate,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    logger.info(f"update_review_request: Entry - user: {account['uid']}, request: {request_id}")

    try:
        review_request = service.update_review_request(
            db, request_id, account['uid'], request_data, account['role']
        )
        logger.info(f"update_review_request: Success - request: {request_id}")
        return envelope(_out(review_request))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"update_review_request: Failure - {e}")
        raise server_error(e)


@router.delete("/{request_id}")
async def delete_review_request(
    request_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    logger.info(f"delete_review_request: Entry - user: {account['uid']}, request: {request_id}")

    try:
        service.delete_review_request(db, request_id, account['uid'], account['role'])
        logger.info(f"delete_review_request: Success - request: {request_id}")
        return envelope({}, message="Review request removed")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"delete_review_request: Failure - {e}")
        raise server_error(e)


@router.post("/{request_id}/remind")
async def send_reminder(
    request_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    """Send the one allowed reminder"""
    logger.info(f"send_reminder: Entry - user: {account['uid']}, request: {request_id}")

    try:
        review_request = await service.send_reminder(db, request_id, account['uid'], account['role'])
        logger.info(f"send_reminder: Success - request: {request_id}")
        return envelope(_out(review_request), message="Reminder sent successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"send_reminder: Failure - {e}")
        raise server_error(e)


@router.post("/{request_id}/send-email")
async def send_email(
    request_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    logger.info(f"send_email: Entry - user: {account['uid']}, request: {request_id}")

    try:
        receipt = await service.send_channel(db, request_id, account['uid'], 'email', account['role'])
        return envelope(receipt.model_dump(), message="Email sent successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"send_email: Failure - {e}")
        raise server_error(e)


@router.post("/{request_id}/send-sms")
async def send_sms(
    request_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: ReviewRequestService = Depends(get_review_request_service),
):
    logger.info(f"send_sms: Entry - user: {account['uid']}, request: {request_id}")

    try:
        receipt = await service.send_channel(db, request_id, account['uid'], 'sms', account['role'])
        return envelope(receipt.model_dump(), message="SMS sent successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"send_sms: Failure - {e}")
        raise server_error(e)
