import secrets
from typing import Optional

from onemore.config.settings import settings

INVITE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_CODE_LENGTH = 8


def generate_invite_code() -> str:
    """Random 8-character code. Collisions are not checked."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def is_valid_invite_code(code: str) -> bool:
    return len(code) == INVITE_CODE_LENGTH and all(c in INVITE_CODE_ALPHABET for c in code)


def _invite_base_url(domain: Optional[str], scheme: str) -> str:
    if domain:
        base = domain if domain.startswith("http") else f"https://{domain}"
        return base.rstrip("/")
    return f"{scheme}://"


def get_invite_link(code: str, domain: Optional[str] = None, scheme: Optional[str] = None) -> str:
    """Join URL for an invite code.

    Uses the configured link domain (universal/app links) when set, otherwise the
    app scheme, e.g. ``onemore://join/ABCD2345``.
    """
    base = _invite_base_url(
        domain if domain is not None else settings.invite_link_domain,
        scheme or settings.invite_scheme,
    )
    if base.startswith("http"):
        return f"{base}/join/{code}"
    return f"{base}join/{code}"


def build_share_message(code: str) -> str:
    link = get_invite_link(code)
    return f"Join my drink counter session!\n\nCode: {code}\n\nOr open this link: {link}"
