"""
WhatsApp audit log service.

Records every message sent to a customer in whatsapp_logs and reads the
history back per order. Twilio status callbacks move rows to delivered or
failed.
"""

from datetime import datetime, timezone
from typing import Optional
import structlog
from supabase import Client

from config import get_supabase_client
from models.whatsapp import MessageStatus, WhatsAppLogResponse
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


# Twilio message status -> stored log status
TWILIO_STATUSES = {
    "accepted": MessageStatus.PENDING,
    "queued": MessageStatus.PENDING,
    "sending": MessageStatus.PENDING,
    "sent": MessageStatus.SENT,
    "delivered": MessageStatus.DELIVERED,
    "read": MessageStatus.DELIVERED,
    "failed": MessageStatus.FAILED,
    "undelivered": MessageStatus.FAILED,
}


class WhatsAppLogService:
    """Reads and writes whatsapp_logs."""

    def __init__(self, db: Client):
        self.db = db
        self.table = "whatsapp_logs"

    def record_sent(
        self,
        order_id: str,
        phone: str,
        message: str,
        twilio_sid: Optional[str]
    ) -> bool:
        """
        Log a sent message.

        The message is already delivered to Twilio at this point, so a
        logging failure is reported in the logs only.

        Returns:
            True if the log row was written
        """
        try:
            self.db.table(self.table).insert({
                "order_id": order_id,
                "recipient_phone": phone,
                "message_body": message,
                "twilio_sid": twilio_sid,
                "status": MessageStatus.SENT.value,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
            return True

        except Exception as e:
            logger.warning(
                "whatsapp_log_insert_failed",
                order_id=order_id,
                twilio_sid=twilio_sid,
                error=str(e)
            )
            return False

    def get_logs(self, order_id: str) -> list[WhatsAppLogResponse]:
        """Message history for an order, newest first."""
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .eq("order_id", order_id)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("get_whatsapp_logs_failed", order_id=order_id, error=str(e))
            raise DatabaseError("select", str(e))

        return [WhatsAppLogResponse(**row) for row in result.data or []]

    def update_status(self, twilio_sid: str, twilio_status: Optional[str]) -> bool:
        """
        Apply a Twilio delivery status callback to the matching log rows.

        Statuses outside TWILIO_STATUSES are ignored. Failures are logged
        only; Twilio gets an acknowledgement either way.

        Returns:
            True if the log was updated
        """
        status = TWILIO_STATUSES.get((twilio_status or "").lower())
        if status is None:
            logger.info("whatsapp_status_ignored", twilio_sid=twilio_sid, twilio_status=twilio_status)
            return False

        try:
            (
                self.db.table(self.table)
                .update({
                    "status": status.value,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })
                .eq("twilio_sid", twilio_sid)
                .execute()
            )
        except Exception as e:
            logger.error(
                "whatsapp_status_update_failed",
                twilio_sid=twilio_sid,
                status=status.value,
                error=str(e)
            )
            return False

        logger.info("whatsapp_status_updated", twilio_sid=twilio_sid, status=status.value)
        return True


def get_whatsapp_log_service() -> WhatsAppLogService:
    """Build a WhatsAppLogService on the shared Supabase client."""
    return WhatsAppLogService(get_supabase_client())
