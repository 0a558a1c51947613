from abc import ABC, abstractmethod
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class NotificationError(Exception):
    """A provider rejected or failed to deliver a message"""

    def __init__(self, message: str, provider: str, code: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.code = code
        self.status_code = status_code


class EmailMessage(BaseModel):
    """Outbound email; rendered by a provider template when template_id is set"""

    to: str
    subject: str
    template_id: Optional[str] = None
    template_data: Dict[str, Any] = Field(default_factory=dict)
    text: Optional[str] = None


class NotificationReceipt(BaseModel):
    provider: str
    channel: Literal["email", "sms", "verification"]
    id: Optional[str] = None
    status: str
    to: str


class NotificationSender(ABC):
    """Capability interface for every outbound customer/owner message"""

    @abstractmethod
    async def send_email(self, message: EmailMessage) -> NotificationReceipt:
        ...

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> NotificationReceipt:
        ...

    @abstractmethod
    async def start_verification(self, phone_number: str) -> NotificationReceipt:
        """Send a one-time code to a phone number"""

    @abstractmethod
    async def check_verification(self, phone_number: str, code: str) -> NotificationReceipt:
        """Check a submitted code; receipt status is 'approved' on success"""
