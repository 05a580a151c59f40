"""
WhatsApp notification models.
"""

from pydantic import Field
from typing import Optional
from enum import Enum
from datetime import datetime

from models.base import BaseSchema, CamelSchema


class OrderStatus(str, Enum):
    """Linear order lifecycle used by the status message templates."""
    NEW = "NEW"
    PROCESSING = "PROCESSING"
    READY = "READY"
    DISPATCHED = "DISPATCHED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class MessageStatus(str, Enum):
    """Delivery status stored in whatsapp_logs."""
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class WhatsAppSendRequest(CamelSchema):
    """Body of POST /api/send-whatsapp."""

    phone: str = Field(..., min_length=1, description="Recipient phone number")
    message: str = Field(..., min_length=1, description="Message body")
    order_id: str = Field(..., min_length=1, description="Order the message is about")
    media_url: Optional[str] = None


class WhatsAppSendResponse(CamelSchema):
    success: bool = True
    message_sid: str
    message: str = "WhatsApp message sent successfully"


class WhatsAppLogResponse(BaseSchema):
    """One row of whatsapp_logs."""

    id: str
    order_id: str
    recipient_phone: str
    message_body: str
    twilio_sid: Optional[str] = None
    status: MessageStatus = MessageStatus.PENDING
    created_at: Optional[datetime] = None
