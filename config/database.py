"""
Database connection management.

Provides the Supabase client used by services. Services receive the client
explicitly (see the get_*_service dependencies), so this module is the only
place a client is constructed.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseConnectionError(Exception):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Prefers the service role key; server routes act on behalf of many SMEs
    and ownership is enforced in the services, not by row level security.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        DatabaseConnectionError: If the client cannot be created
    """
    key = settings.supabase_service_role_key or settings.supabase_key

    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "...",  # Log partial URL only
            service_role=bool(settings.supabase_service_role_key)
        )

        client = create_client(settings.supabase_url, key)

        logger.info("supabase_connected", status="success")
        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise DatabaseConnectionError(f"Failed to connect to Supabase: {e}") from e




def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        client = get_supabase_client()
        schemas = client.table("form_schemas").select("id", count="exact").limit(1).execute()

        return {
            "status": "healthy",
            "form_schemas_count": schemas.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }
