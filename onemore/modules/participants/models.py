# Supabase table: participants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

participants:
- id: uuid (primary key)
- session_id: uuid (foreign key to sessions.id, not null, on delete cascade)
- display_name: text (not null)
- claimed_by_user_id: uuid (nullable) - set once via a conditional update (only where null)
- color_index: integer (nullable) - index into the participant color palette
- created_at: timestamp (default: now())

Realtime publication enabled; clients subscribe with filter session_id=eq.<id>.
"""
