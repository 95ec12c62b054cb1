# Supabase table: drink_types
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

drink_types:
- id: uuid (primary key)
- session_id: uuid (foreign key to sessions.id, not null, on delete cascade)
- name: text (not null)
- category: text (not null) - values: beer, soft, cocktail
- price_cents: integer (not null, default: 0)
- emoji: text (not null)
- sort_order: integer (not null) - display order; duplicates tolerated
- created_at: timestamp (default: now())
"""
