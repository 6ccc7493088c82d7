"""Shared fixtures: clean environment, sample payloads."""
import pytest

from api import storage

ENV_VARS = [
    "MODEL", "OPENAI_API_KEY", "OPENAI_KEY", "LLM_API", "PROMPT_VARIANT", "LLM_TEMPERATURE",
    "POSTGRES_URL", "DATABASE_URL", "SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_ANON_KEY",
    "EXPO_PUBLIC_SUPABASE_URL", "EXPO_PUBLIC_SUPABASE_KEY", "STORAGE_BACKEND", "STORAGE_ATOMIC",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """No real credentials leak in from the shell or .env."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    storage.reset_writer()
    yield
    storage.reset_writer()


@pytest.fixture
def cards():
    return [
        {"name": "El puente", "image_path": "/cards/puente.png"},
        {"name": "La llave"},
        {"name": "El faro", "image_path": ""},
    ]


@pytest.fixture
def payload(cards):
    return {
        "question": "¿Cambio de trabajo este año?",
        "cards": cards,
        "notes": [
            {"name": "El puente", "note": "Siento que estoy a mitad de camino."},
            {"card_name": "La llave", "note": "Algo que ya tengo."},
            {"note": "   "},
        ],
    }
