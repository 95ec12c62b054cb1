# Supabase table: drink_events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

drink_events (append-only ledger):
- id: uuid (primary key)
- session_id: uuid (foreign key to sessions.id, not null, on delete cascade)
- actor_user_id: uuid (not null) - user who pressed +/-
- target_participant_id: uuid (foreign key to participants.id, not null, on delete cascade)
- drink_type_id: uuid (foreign key to drink_types.id, not null, on delete cascade)
- delta: smallint (not null) - check (delta in (-1, 1))
- created_at: timestamp (default: now())

A participant's count for a drink type is sum(delta) over matching rows.
Rows are never updated; they only disappear through cascading deletes.
"""
