"""Data, state and Supabase access for the photocard collection pages."""
