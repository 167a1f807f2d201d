from supabase import create_client

from nursing_rocks.config import settings

# Supabase client (created once)
supabase = create_client(
    settings.SUPABASE_URL,
    settings.SUPABASE_KEY,
)
