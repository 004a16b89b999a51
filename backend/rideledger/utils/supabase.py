from supabase import create_client, Client
from rideledger.config import settings

def get_supabase_client() -> Client:
    """
    Create and return a Supabase client instance.
    Uses service role key for server-side writes to documents and storage.
    """
    supabase: Client = create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY
    )
    return supabase

def get_supabase_anon_client() -> Client:
    """
    Create and return a Supabase client with anon key.
    Reference tables (vat_rates) are readable under RLS with this key.
    """
    supabase: Client = create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_KEY
    )
    return supabase
