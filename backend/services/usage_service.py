import asyncio
from typing import Callable, Protocol

from supabase import Client

from core.errors import LoggingError
from models.usage_record import UsageRecord


class UsageSink(Protocol):
    async def append(self, record: UsageRecord) -> None:
        """Persist one usage record. Raises LoggingError on failure."""
        ...


class SupabaseUsageSink:
    """Append-only usage log backed by a Supabase table.

    The client is resolved on every append, so missing credentials or an
    unreachable project surface as LoggingError instead of failing startup.
    """

    def __init__(self, get_client: Callable[[], Client], table: str = "image_edit_usage"):
        self.get_client = get_client
        self.table = table

    async def append(self, record: UsageRecord) -> None:
        """Insert a usage record; records are never updated or deleted here"""
        try:
            supabase = self.get_client()
            result = await asyncio.to_thread(
                lambda: supabase.table(self.table)
                .insert(record.to_row())
                .execute()
            )
        except Exception as e:
            raise LoggingError(message=f"Failed to insert usage record {record.id}: {e}") from e

        if not result.data:
            raise LoggingError(message=f"Usage record {record.id} was not stored")
