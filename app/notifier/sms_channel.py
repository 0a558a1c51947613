import httpx
import logging
from typing import Optional

from app.notifier.base import NotificationError, NotificationReceipt

logger = logging.getLogger(__name__)

TWILIO_API_URL = "https://api.twilio.com/2010-04-01"
TWILIO_VERIFY_URL = "https://verify.twilio.com/v2"

# Twilio error codes rewritten into something an account owner can act on
UNVERIFIED_DESTINATION = 21608
VERIFICATION_TRIAL_RESTRICTION = 60200

FRIENDLY_ERRORS = {
    UNVERIFIED_DESTINATION: (
        "Trial account limitation: You can only send SMS to verified phone numbers. "
        "Please verify the recipient number in the Twilio console."
    ),
    VERIFICATION_TRIAL_RESTRICTION: (
        "Trial account limitation: Invalid phone number format or number not verified. "
        "For trial accounts, you must verify the recipient phone number in the Twilio console."
    ),
}


def twilio_error(response: httpx.Response, action: str) -> NotificationError:
    """Translate a failed Twilio response into a NotificationError"""
    try:
        body = response.json()
    except ValueError:
        body = {}
    code = body.get("code")
    provider_message = body.get("message") or response.text

    if code in FRIENDLY_ERRORS:
        message = FRIENDLY_ERRORS[code]
    else:
        message = f"Failed to {action}: {provider_message}"
    return NotificationError(message, provider="twilio", code=code, status_code=response.status_code)


class TwilioSmsChannel:
    """Twilio Messages and Verify v2 over HTTP"""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        verify_service_sid: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.verify_service_sid = verify_service_sid
        self._http_client = http_client
        self.logger = logging.getLogger(__name__)

    async def _post(self, url: str, data: dict) -> httpx.Response:
        auth = (self.account_sid, self.auth_token)
        if self._http_client is not None:
            return await self._http_client.post(url, data=data, auth=auth, timeout=30.0)
        async with httpx.AsyncClient() as client:
            return await client.post(url, data=data, auth=auth, timeout=30.0)

    async def _call(self, url: str, data: dict, action: str) -> dict:
        try:
            response = await self._post(url, data)
        except httpx.HTTPError as e:
            self.logger.error(f"{action}: Twilio transport error - {e}")
            raise NotificationError(f"Failed to {action}: {e}", provider="twilio") from e

        if response.is_error:
            error = twilio_error(response, action)
            self.logger.error(
                f"{action}: Twilio error - code: {error.code}, status: {error.status_code}, message: {error}"
            )
            raise error
        return response.json()

    def _require_verify_service(self) -> str:
        if not self.verify_service_sid:
            raise NotificationError(
                "TWILIO_VERIFY_SERVICE_SID is not configured in environment variables", provider="twilio"
            )
        return self.verify_service_sid

    async def send(self, to: str, body: str) -> NotificationReceipt:
        self.logger.info(f"send: Entry - to: {to}")
        url = f"{TWILIO_API_URL}/Accounts/{self.account_sid}/Messages.json"
        result = await self._call(url, {"To": to, "From": self.from_number, "Body": body}, "send SMS message")
        self.logger.info(f"send: Success - sid: {result.get('sid')}")
        return NotificationReceipt(
            provider="twilio", channel="sms", id=result.get("sid"), status=result.get("status", "queued"), to=to
        )

    async def start_verification(self, phone_number: str) -> NotificationReceipt:
        self.logger.info(f"start_verification: Entry - to: {phone_number}")
        url = f"{TWILIO_VERIFY_URL}/Services/{self._require_verify_service()}/Verifications"
        result = await self._call(url, {"To": phone_number, "Channel": "sms"}, "send verification code")
        self.logger.info(f"start_verification: Success - sid: {result.get('sid')}")
        return NotificationReceipt(
            provider="twilio",
            channel="verification",
            id=result.get("sid"),
            status=result.get("status", "pending"),
            to=phone_number,
        )

    async def check_verification(self, phone_number: str, code: str) -> NotificationReceipt:
        self.logger.info(f"check_verification: Entry - to: {phone_number}")
        url = f"{TWILIO_VERIFY_URL}/Services/{self._require_verify_service()}/VerificationCheck"
        result = await self._call(url, {"To": phone_number, "Code": code}, "verify code")
        self.logger.info(f"check_verification: Success - status: {result.get('status')}")
        return NotificationReceipt(
            provider="twilio",
            channel="verification",
            id=result.get("sid"),
            status=result.get("status", "pending"),
            to=phone_number,
        )
