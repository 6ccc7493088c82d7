"""
Environment configuration. Read at call time so tests can monkeypatch.
Local dev: values come from .env (loaded by server.py).
"""
import os

DEFAULT_MODEL = "gpt-4o-mini"


def get_model() -> str:
    return (os.environ.get("MODEL") or DEFAULT_MODEL).strip()


def get_openai_key() -> str:
    return (os.environ.get("OPENAI_API_KEY") or os.environ.get("OPENAI_KEY") or "").strip()


def get_llm_api() -> str:
    """'responses' (default) or 'chat'."""
    api = (os.environ.get("LLM_API") or "responses").strip().lower()
    return api if api in ("responses", "chat") else "responses"


def get_prompt_variant() -> str:
    variant = (os.environ.get("PROMPT_VARIANT") or "strict").strip().lower()
    return variant if variant in ("strict", "associative") else "strict"


def get_temperature() -> float | None:
    raw = (os.environ.get("LLM_TEMPERATURE") or "").strip()
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def get_postgres_url() -> str:
    return (os.environ.get("POSTGRES_URL") or os.environ.get("DATABASE_URL") or "").strip()


def get_supabase_credentials() -> tuple:
    url = os.environ.get("SUPABASE_URL") or os.environ.get("EXPO_PUBLIC_SUPABASE_URL", "")
    key = (
        os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        or os.environ.get("SUPABASE_ANON_KEY")
        or os.environ.get("EXPO_PUBLIC_SUPABASE_KEY", "")
    )
    return url.strip(), key.strip()


def get_storage_backend() -> str:
    """Explicit STORAGE_BACKEND wins; otherwise pick by which credentials exist."""
    forced = (os.environ.get("STORAGE_BACKEND") or "").strip().lower()
    if forced in ("postgres", "supabase", "none"):
        return forced
    if get_postgres_url():
        return "postgres"
    url, key = get_supabase_credentials()
    if url and key:
        return "supabase"
    return "none"


def storage_atomic() -> bool:
    return (os.environ.get("STORAGE_ATOMIC") or "").strip().lower() in ("1", "true", "yes")
