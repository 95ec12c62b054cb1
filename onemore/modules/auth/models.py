# Supabase Auth
# This module uses Supabase's built-in anonymous authentication
# No custom tables are required - Supabase Auth handles:
# - Anonymous sign-in (auth.users row with is_anonymous = true)
# - Session persistence and refresh on the client
# - JWT token generation and validation

"""
Supabase Auth provides:
- auth.sign_in_anonymously() - Issue a stable per-device user without credentials
- auth.get_user() - Get current user from the stored session or a JWT token
- auth.get_session() - Restore a previously persisted session

The user id issued here is what sessions.owner_user_id,
participants.claimed_by_user_id and drink_events.actor_user_id refer to.
"""
