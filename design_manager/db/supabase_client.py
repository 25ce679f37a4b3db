"""Supabase client and table handles for design item storage."""

from functools import lru_cache

from supabase import Client, create_client

from design_manager.core.config import get_settings
from design_manager.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get Supabase client instance (cached singleton).

    Returns:
        Supabase client configured with service role key

    Raises:
        RuntimeError: If client initialization fails
    """
    settings = get_settings()
    try:
        client = create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        logger.error(f"Supabase client init failed for {settings.SUPABASE_URL}: {e}")
        raise RuntimeError(f"Failed to initialize Supabase client: {e}") from e

    logger.info(f"Supabase client ready ({settings.DESIGN_MANAGER_ENV})")
    return client


def design_items_table():
    """Query builder for the configured design items table."""
    return get_supabase().table(get_settings().DESIGN_ITEMS_TABLE)
