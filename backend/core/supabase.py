from supabase import create_client, Client
from typing import Optional

from config.settings import Settings


class SupabaseClient:
    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls, settings: Settings) -> Client:
        if cls._instance is None:
            settings.validate_usage_sink()
            cls._instance = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)

        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None


# Convenience function to get the client
def get_supabase(settings: Settings) -> Client:
    return SupabaseClient.get_client(settings)
