from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.core.errors import server_error
from app.core.middleware import get_current_account
from app.notifier.sender import get_notification_sender
from app.schemas.common import envelope
from app.schemas.feedback import FeedbackSubmit, FeedbackStatusUpdate, FeedbackRespond, FeedbackOut
from app.services.feedback_service import FeedbackService
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def get_feedback_service(request: Request) -> FeedbackService:
    """Dependency to get feedback service instance"""
    return FeedbackService(sender=get_notification_sender(request))


def _out(feedback) -> dict:
    return FeedbackOut.model_validate(feedback).to_json()


@router.post("/submit/request/{unique_id}", status_code=201)
async def submit_request_feedback(
    unique_id: str,
    feedback_data: FeedbackSubmit,
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Feedback through a review request link; completes the request.
    Public endpoint - no authentication required.
    """
    logger.info("submit_request_feedback: Entry")

    try:
        feedback = await service.submit_for_request(db, unique_id, feedback_data)
        logger.info(f"submit_request_feedback: Success - feedback: {feedback.id}")
        return envelope(_out(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"submit_request_feedback: Failure - {e}")
        raise server_error(e)


@router.post("/submit/{business_id}", status_code=201)
async def submit_feedback(
    business_id: str,
    feedback_data: FeedbackSubmit,
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    """
    Customer feedback for a business.
    Public endpoint - no authentication required.
    """
    logger.info(f"submit_feedback: Entry - business: {business_id}")

    try:
        feedback = await service.submit(db, business_id, feedback_data)
        logger.info(f"submit_feedback: Success - feedback: {feedback.id}")
        return envelope(_out(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"submit_feedback: Failure - {e}")
        raise server_error(e)


@router.get("")
@router.get("/", include_in_schema=False)
async def list_feedback(
    business_id: Optional[str] = Query(None, alias="businessId"),
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    """Feedback across the caller's businesses, newest first"""
    logger.info(f"list_feedback: Entry - user: {account['uid']}")

    try:
        feedback = service.list_for_owner(db, account['uid'], business_id, account['role'])
        return envelope([_out(f) for f in feedback], count=len(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"list_feedback: Failure - {e}")
        raise server_error(e)


@router.get("/business/{business_id}")
async def list_business_feedback(
    business_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    logger.info(f"list_business_feedback: Entry - user: {account['uid']}, business: {business_id}")

    try:
        feedback = service.list_for_owner(db, account['uid'], business_id, account['role'])
        return envelope([_out(f) for f in feedback], count=len(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"list_business_feedback: Failure - {e}")
        raise server_error(e)


@router.get("/analytics/{business_id}")
async def get_feedback_analytics(
    business_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    logger.info(f"get_feedback_analytics: Entry - user: {account['uid']}, business: {business_id}")

    try:
        return envelope(service.analytics(db, business_id, account['uid'], account['role']))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_feedback_analytics: Failure - {e}")
        raise server_error(e)


@router.get("/{feedback_id}")
async def get_feedback(
    feedback_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    logger.info(f"get_feedback: Entry - user: {account['uid']}, feedback: {feedback_id}")

    try:
        feedback = service.get_feedback(db, feedback_id, account['uid'], account['role'])
        return envelope(_out(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"get_feedback: Failure - {e}")
        raise server_error(e)


@router.put("/{feedback_id}")
async def update_feedback_status(
    feedback_id: str,
    status_data: FeedbackStatusUpdate,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    logger.info(f"update_feedback_status: Entry - user: {account['uid']}, feedback: {feedback_id}")

    try:
        feedback = service.update_status(
            db, feedback_id, account['uid'], status_data.status.value, account['role']
        )
        logger.info(f"update_feedback_status: Success - feedback: {feedback_id}")
        return envelope(_out(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"update_feedback_status: Failure - {e}")
        raise server_error(e)


@router.post("/{feedback_id}/respond")
async def respond_to_feedback(
    feedback_id: str,
    respond_data: FeedbackRespond,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    logger.info(f"respond_to_feedback: Entry - user: {account['uid']}, feedback: {feedback_id}")

    try:
        feedback = service.respond(db, feedback_id, account['uid'], respond_data.response, account['role'])
        logger.info(f"respond_to_feedback: Success - feedback: {feedback_id}")
        return envelope(_out(feedback))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"respond_to_feedback: Failure - {e}")
        raise server_error(e)


@router.delete("/{feedback_id}")
async def delete_feedback(
    feedback_id: str,
    account: dict = Depends(get_current_account),
    db: Session = Depends(get_db),
    service: FeedbackService = Depends(get_feedback_service),
):
    logger.info(f"delete_feedback: Entry - user: {account['uid']}, feedback: {feedback_id}")

    try:
        service.delete_feedback(db, feedback_id, account['uid'], account['role'])
        logger.info(f"delete_feedback: Success - feedback: {feedback_id}")
        return envelope({}, message="Feedback removed")
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"delete_feedback: Failure - {e}")
        raise server_error(e)
