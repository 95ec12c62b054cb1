import hashlib
import logging
import time
from supabase import AsyncClient
from onemore.core.exceptions import AuthenticationError
from onemore.modules.auth.schemas import AnonymousSignInResponse
from typing import Any, Dict

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def _user_to_dict(user: Any) -> Dict[str, Any]:
    created_at = getattr(user, "created_at", None)
    return {
        "id": user.id,
        "is_anonymous": bool(getattr(user, "is_anonymous", False)),
        "created_at": created_at.isoformat() if hasattr(created_at, "isoformat") else created_at,
    }


class AuthService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def sign_in_anonymously(self) -> AnonymousSignInResponse:
        """Issue a new anonymous identity"""
        try:
            auth_response = await self.supabase.auth.sign_in_anonymously()
        except Exception as e:
            logger.error(f"Anonymous sign-in failed: {e}")
            raise AuthenticationError(f"Authentication failed: {e}") from e

        if not auth_response.user or not auth_response.session:
            raise AuthenticationError("Failed to authenticate user")

        return AnonymousSignInResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            user_id=auth_response.user.id,
        )

    async def ensure_authenticated(self) -> Dict[str, Any]:
        """Current user of this client, signing in anonymously when there is none.

        The SDK persists the session, so a restarted client keeps the same user id.
        """
        try:
            user_response = await self.supabase.auth.get_user()
            user = user_response.user if user_response else None
        except Exception as e:
            # No stored session: the SDK raises instead of returning None
            logger.debug(f"No stored auth session: {e}")
            user = None

        if user is None:
            try:
                auth_response = await self.supabase.auth.sign_in_anonymously()
            except Exception as e:
                logger.error(f"Anonymous sign-in failed: {e}")
                raise AuthenticationError(f"Authentication failed: {e}") from e
            user = auth_response.user

        if user is None:
            raise AuthenticationError("Failed to authenticate user")
        return _user_to_dict(user)

    async def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user_data, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]
        try:
            user_response = await self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise AuthenticationError("Invalid or expired token") from e
            raise AuthenticationError("Authentication failed") from e
        if not user_response or not user_response.user:
            raise AuthenticationError("Invalid or expired token")
        user_data = _user_to_dict(user_response.user)
        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
        return user_data
