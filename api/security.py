"""
Security utilities: anonymous identity cookie, input sanitization.
"""
import re
import uuid

ANON_COOKIE = "anon_id"
ANON_MAX_AGE = 31536000  # one year

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_ANON_COOKIE_RE = re.compile(r"(?:^|;)\s*" + ANON_COOKIE + r"=([^;]*)")


# ── Anonymous identity ──

def anon_cookie_header(anon_id: str) -> str:
    return f"{ANON_COOKIE}={anon_id}; Path=/; Max-Age={ANON_MAX_AGE}; SameSite=Lax; Secure"


def read_anon_id(cookie_header: str) -> str | None:
    """Return the anon_id from a Cookie header if it looks like a lowercase UUID."""
    if not cookie_header:
        return None
    m = _ANON_COOKIE_RE.search(cookie_header)
    if not m:
        return None
    token = m.group(1).strip()
    return token if _UUID_RE.match(token) else None


def resolve_anon_id(cookie_header: str) -> tuple:
    """
    Return (anon_id, set_cookie). set_cookie is None when the client already
    carries a valid token; otherwise it's the Set-Cookie value for a fresh one.
    """
    existing = read_anon_id(cookie_header)
    if existing:
        return existing, None
    anon_id = str(uuid.uuid4())
    return anon_id, anon_cookie_header(anon_id)


# ── Input sanitization ──

def sanitize_text(text: str, max_length: int = None) -> str:
    """Strip control characters (and optionally enforce a length limit)."""
    if not text:
        return ""
    if max_length is not None:
        text = text[:max_length]
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    return text.strip()


def validate_uuid(uid: str) -> str | None:
    """Validate UUID format."""
    if not uid or not isinstance(uid, str):
        return None
    if _UUID_RE.match(uid.strip().lower()):
        return uid.strip().lower()
    return None
