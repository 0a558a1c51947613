from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from app.core.errors import server_error
from app.core.middleware import get_current_user
from app.notifier.base import NotificationSender
from app.notifier.sender import get_notification_sender
from app.schemas.common import CamelModel, envelope
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


class SmsSend(CamelModel):
    to: Optional[str] = None
    message: Optional[str] = None


class VerificationStart(CamelModel):
    phone_number: Optional[str] = None


class VerificationCheck(CamelModel):
    phone_number: Optional[str] = None
    code: Optional[str] = None


@router.post("/send")
async def send_sms(
    sms_data: SmsSend,
    current_user: dict = Depends(get_current_user),
    sender: NotificationSender = Depends(get_notification_sender),
):
    """Send a free-form SMS"""
    logger.info(f"send_sms: Entry - user: {current_user['uid']}")

    if not sms_data.to or not sms_data.message:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number and message are required"
        )

    try:
        receipt = await sender.send_sms(sms_data.to, sms_data.message)
        logger.info(f"send_sms: Success - id: {receipt.id}")
        return envelope(receipt.model_dump())
    except Exception as e:
        logger.error(f"send_sms: Failure - {e}")
        raise server_error(e, "Failed to send SMS message")


@router.post("/verify/send")
async def send_verification_code(
    verification_data: VerificationStart,
    sender: NotificationSender = Depends(get_notification_sender),
):
    """
    Send a one-time code to a phone number.
    Public endpoint - no authentication required.
    """
    logger.info("send_verification_code: Entry")

    if not verification_data.phone_number:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number is required"
        )

    try:
        receipt = await sender.start_verification(verification_data.phone_number)
        logger.info(f"send_verification_code: Success - status: {receipt.status}")
        return envelope(receipt.model_dump())
    except Exception as e:
        logger.error(f"send_verification_code: Failure - {e}")
        raise server_error(e, "Failed to send verification code")


@router.post("/verify/check")
async def check_verification_code(
    verification_data: VerificationCheck,
    sender: NotificationSender = Depends(get_notification_sender),
):
    """
    Check a one-time code.
    Public endpoint - no authentication required.
    """
    logger.info("check_verification_code: Entry")

    if not verification_data.phone_number or not verification_data.code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Phone number and verification code are required"
        )

    try:
        receipt = await sender.check_verification(verification_data.phone_number, verification_data.code)
        logger.info(f"check_verification_code: Success - status: {receipt.status}")
        return envelope({**receipt.model_dump(), "valid": receipt.status == "approved"})
    except Exception as e:
        logger.error(f"check_verification_code: Failure - {e}")
        raise server_error(e, "Failed to verify code")
