# Supabase table: participant_balances
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

participant_balances:
- session_id: uuid (foreign key to sessions.id, not null, on delete cascade)
- participant_id: uuid (foreign key to participants.id, not null, on delete cascade)
- amount_cents: integer (not null)
- updated_at: timestamp (default: now())
- unique constraint on (participant_id)
"""
