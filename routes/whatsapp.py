"""
WhatsApp API routes.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Form
import structlog

from models.whatsapp import WhatsAppSendRequest, WhatsAppSendResponse
from integrations.whatsapp import WhatsAppClient, get_whatsapp_client
from services.whatsapp_log_service import WhatsAppLogService, get_whatsapp_log_service
from routes.errors import handle_error

logger = structlog.get_logger(__name__)

router = APIRouter()


# Sync handlers: retries sleep between attempts, so these run in the
# threadpool instead of on the event loop.

@router.post("/send-whatsapp", response_model=WhatsAppSendResponse)
def send_whatsapp(
    data: WhatsAppSendRequest,
    client: WhatsAppClient = Depends(get_whatsapp_client),
    logs: WhatsAppLogService = Depends(get_whatsapp_log_service)
):
    """
    Send a WhatsApp message to a customer or rider, with retries.

    Raises:
        400: Invalid phone number or message
        503: Twilio failed after all retries
    """
    try:
        sid = client.send_with_retry(data.phone, data.message, data.media_url)
        logs.record_sent(data.order_id, data.phone, data.message, sid)
        return WhatsAppSendResponse(message_sid=sid)

    except Exception as e:
        return handle_error(e)


@router.get("/whatsapp-logs/{order_id}")
def get_whatsapp_logs(
    order_id: str,
    logs: WhatsAppLogService = Depends(get_whatsapp_log_service)
):
    """Message history for an order, newest first."""
    try:
        rows = logs.get_logs(order_id)
        return {
            "success": True,
            "logs": [row.model_dump(mode="json") for row in rows]
        }

    except Exception as e:
        return handle_error(e)


@router.post("/whatsapp/webhook")
def whatsapp_status_webhook(
    message_sid: Optional[str] = Form(None, alias="MessageSid"),
    message_status: Optional[str] = Form(None, alias="MessageStatus"),
    to: Optional[str] = Form(None, alias="To"),
    logs: WhatsAppLogService = Depends(get_whatsapp_log_service)
):
    """
    Twilio delivery status callback.

    Always acknowledged; updates whatsapp_logs.status for the message SID.
    """
    logger.info("whatsapp_webhook_received", sid=message_sid, status=message_status, to=to)

    if message_sid:
        logs.update_status(message_sid, message_status)

    return {"success": True}
