# Supabase table: sessions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

sessions:
- id: uuid (primary key)
- owner_user_id: uuid (foreign key to auth.users.id, not null) - immutable after creation
- name: text (not null)
- invite_code: text (not null) - 8 chars from ABCDEFGHJKLMNPQRSTUVWXYZ23456789
- created_at: timestamp (default: now())

participants, drink_types, drink_events and participant_balances reference
sessions.id with ON DELETE CASCADE.
"""
