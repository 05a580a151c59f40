"""
WhatsApp messaging through the Twilio REST API.

Normalizes Nigerian phone numbers, sends single messages, and retries failed
sends with exponential backoff.
"""

import re
import time
from typing import Callable, Optional
import requests
import structlog

from config import settings
from models.whatsapp import OrderStatus
from exceptions import InvalidPhoneNumberError, ValidationError, WhatsAppError

logger = structlog.get_logger(__name__)


TWILIO_API_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"
MAX_MESSAGE_LENGTH = 4096

_PHONE_NOISE = re.compile(r"[\s\-()]")


def format_phone_number(phone: str) -> Optional[str]:
    """
    Normalize a Nigerian phone number to +234XXXXXXXXXX.

    Accepts:
        +2348012345678, 2348012345678, 08012345678
        (spaces, dashes and parentheses are ignored)

    Returns:
        The +234 form, or None if the number is not recognised
    """
    cleaned = _PHONE_NOISE.sub("", phone or "")

    if cleaned.startswith("+234") and len(cleaned) == 14:
        return cleaned
    if cleaned.startswith("0") and len(cleaned) == 11:
        return "+234" + cleaned[1:]
    if cleaned.startswith("234") and len(cleaned) == 13:
        return "+" + cleaned
    return None


def get_order_status_message(
    status: str,
    order_id: str,
    tracking_url: Optional[str] = None
) -> str:
    """
    Customer-facing message for an order status change.

    Args:
        status: OrderStatus value
        order_id: Readable order number shown to the customer
        tracking_url: Tracking link (DISPATCHED) or rating link (COMPLETED)
    """
    if status == OrderStatus.DISPATCHED:
        if tracking_url:
            return f"Your order #{order_id} is on its way! 🚀\n\nTrack your delivery here: {tracking_url}"
        return f"Your order #{order_id} is on its way! 🚀 You'll receive a tracking link shortly."

    if status == OrderStatus.COMPLETED:
        message = f"Your order #{order_id} has been delivered. Thank you for your purchase! ✅"
        if tracking_url:
            message += f"\n\nPlease rate your experience: {tracking_url}"
        return message

    templates = {
        OrderStatus.NEW.value: f"Hello! Your order #{order_id} has been received. We'll start processing it shortly. 🎉",
        OrderStatus.PROCESSING.value: f"Your order #{order_id} is now being processed. ⚙️ We'll notify you when it's ready!",
        OrderStatus.READY.value: f"Great news! Your order #{order_id} is ready and will be dispatched soon. 📦",
        OrderStatus.CANCELLED.value: f"Your order #{order_id} has been cancelled. Please contact support for more details. ❌",
    }
    return templates.get(status, f"Order #{order_id} status: {status}")


class WhatsAppClient:
    """
    Twilio WhatsApp sender.

    Construct one per process with get_whatsapp_client(), or pass explicit
    credentials in tests.
    """

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str],
        max_attempts: int = 3,
        retry_base_seconds: float = 1.0,
        timeout: float = 10,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = (from_number or "").replace("whatsapp:", "")
        self.max_attempts = max(1, max_attempts)
        self.retry_base_seconds = retry_base_seconds
        self.timeout = timeout
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and self.from_number)

    def send_message(
        self,
        phone: str,
        message: str,
        media_url: Optional[str] = None
    ) -> str:
        """
        Send one WhatsApp message.

        Args:
            phone: Recipient in any accepted Nigerian format
            message: Body, 1 to 4096 characters
            media_url: Optional media attachment

        Returns:
            Twilio message SID

        Raises:
            InvalidPhoneNumberError: Phone number not recognised
            ValidationError: Empty or oversized message
            WhatsAppError: Twilio not configured, or the request failed
        """
        to_number = format_phone_number(phone)
        if not to_number:
            raise InvalidPhoneNumberError(phone)

        if not message:
            raise ValidationError("Message cannot be empty", code="EMPTY_MESSAGE")

        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError(
                f"Message exceeds maximum length of {MAX_MESSAGE_LENGTH} characters",
                code="MESSAGE_TOO_LONG",
                details={"length": len(message)}
            )

        if not self.configured:
            logger.warning("twilio_not_configured")
            raise WhatsAppError("Twilio is not configured")

        payload = {
            "From": f"whatsapp:{self.from_number}",
            "To": f"whatsapp:{to_number}",
            "Body": message,
        }
        if media_url:
            payload["MediaUrl"] = media_url

        try:
            response = requests.post(
                TWILIO_API_URL.format(sid=self.account_sid),
                data=payload,
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("whatsapp_request_failed", to=to_number, error=str(e))
            raise WhatsAppError(f"Failed to send WhatsApp message: {e}") from e

        if not response.ok:
            try:
                body = response.json()
            except ValueError:
                body = {}
            error_msg = body.get("message") or response.text or "Unknown error"
            logger.error(
                "whatsapp_api_error",
                to=to_number,
                status=response.status_code,
                error=error_msg
            )
            raise WhatsAppError(
                f"Twilio API error: {error_msg}",
                details={"status": response.status_code, "twilio_code": body.get("code")}
            )

        sid = response.json().get("sid")
        logger.info("whatsapp_message_sent", to=to_number, sid=sid)
        return sid

    def send_with_retry(
        self,
        phone: str,
        message: str,
        media_url: Optional[str] = None
    ) -> str:
        """
        Send a message, retrying transport failures.

        Waits retry_base_seconds * 2 ** (attempt - 1) between attempts
        (1s, 2s, ... by default). Validation errors are raised immediately.

        Raises:
            WhatsAppError: Last failure once all attempts are used
        """
        last_error: Optional[WhatsAppError] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.send_message(phone, message, media_url)
            except WhatsAppError as e:
                last_error = e

            if attempt < self.max_attempts:
                delay = self.retry_base_seconds * (2 ** (attempt - 1))
                logger.info(
                    "whatsapp_retry_scheduled",
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    delay_seconds=delay
                )
                self._sleep(delay)

        logger.error("whatsapp_retries_exhausted", attempts=self.max_attempts)
        last_error.details["attempts"] = self.max_attempts
        raise last_error


def get_whatsapp_client() -> WhatsAppClient:
    """Build a WhatsAppClient from settings."""
    return WhatsAppClient(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_whatsapp_number,
        max_attempts=settings.whatsapp_max_attempts,
        retry_base_seconds=settings.whatsapp_retry_base_seconds,
    )
