"""
Expired OTP cleanup.

Delivery OTPs live in orders_otp and expire after a few minutes. A
background task started with the application deletes expired rows once at
startup and then on a fixed interval.
"""

import asyncio
from contextlib import suppress
from datetime import datetime, timezone
from typing import Callable, Optional
import structlog
from supabase import Client

logger = structlog.get_logger(__name__)


OTP_TABLE = "orders_otp"


def cleanup_expired_otps(db: Client) -> dict:
    """
    Delete OTP records whose expires_at is in the past.

    Never raises; failures are logged and reported in the result.

    Returns:
        {"deleted": int} or {"deleted": 0, "error": str}
    """
    now = datetime.now(timezone.utc).isoformat()

    try:
        result = db.table(OTP_TABLE).delete().lt("expires_at", now).execute()
    except Exception as e:
        logger.error("otp_cleanup_failed", error=str(e))
        return {"deleted": 0, "error": str(e)}

    deleted = len(result.data or [])
    logger.info("expired_otps_deleted", deleted=deleted)
    return {"deleted": deleted}


class OtpCleanupScheduler:
    """
    Runs cleanup_expired_otps periodically on the event loop.

    The delete itself is a blocking Supabase call, so each run happens in a
    worker thread.

    Usage:
        scheduler = OtpCleanupScheduler(get_supabase_client, interval_seconds=3600)
        scheduler.start()      # inside a running loop, e.g. app lifespan
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        client_factory: Callable[[], Client],
        interval_seconds: float = 3600
    ):
        self.client_factory = client_factory
        self.interval_seconds = interval_seconds
        self.runs = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def run_once(self) -> dict:
        """One cleanup pass. Never raises."""
        try:
            db = self.client_factory()
        except Exception as e:
            logger.error("otp_cleanup_client_unavailable", error=str(e))
            result = {"deleted": 0, "error": str(e)}
        else:
            result = cleanup_expired_otps(db)

        self.runs += 1
        return result

    async def _loop(self) -> None:
        while True:
            await asyncio.to_thread(self.run_once)
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self.running:
            return
        logger.info("otp_cleanup_schedule_started", interval_seconds=self.interval_seconds)
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("otp_cleanup_schedule_stopped", runs=self.runs)
