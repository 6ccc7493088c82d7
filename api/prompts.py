"""
Prompt construction for the visual reflection: instructions, per-request input,
output schema, and payload validation.
"""
import json

from api.errors import ValidationError
from api.security import sanitize_text

MORAL_PREFIX = "MORALEJA:"
SCHEMA_NAME = "ReflexiaV2"

OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "insight": {"type": "string"},
        "miniStory": {"type": "string"},
    },
    "required": ["insight", "miniStory"],
    "additionalProperties": False,
}

_CARD_POLICY = {
    # Cards are only a trigger; never echoed literally.
    "strict": {
        "intro": "Tres cartas visuales que eligió (solo los nombres sirven como disparador, no los repitas literalmente).",
        "insight": "- No menciones las cartas ni sus símbolos de forma literal.",
        "story": "- Está estrictamente prohibido que uses las cartas y sus símbolos de forma literal en la fábula. La fábula es para ver el caso desde otra mirada.",
    },
    # Associative reading allowed in the insight, still banned in the fable.
    "associative": {
        "intro": "Tres cartas visuales que eligió (podés usarlas de forma asociativa en el insight).",
        "insight": "- Podés retomar las cartas de manera asociativa (qué evocan, qué despiertan), sin interpretarlas como oráculo.",
        "story": "- En la fábula NO uses las cartas ni sus símbolos de forma literal. La fábula es para ver el caso desde otra mirada.",
    },
}


def build_instructions(variant: str = "strict") -> str:
    policy = _CARD_POLICY.get(variant) or _CARD_POLICY["strict"]
    return f"""Eres un coach reflexivo en español rioplatense. Habla de manera cálida, concreta y empática, nunca como oráculo ni terapeuta.

El usuario te da:
- Una pregunta o inquietud personal (texto libre).
- {policy["intro"]}
- Notas breves que escribió sobre lo que sintió o pensó al ver las cartas.

Tu tarea es devolver SOLO JSON con dos campos:

{{
  "insight": "...",
  "miniStory": "..."
}}

### Reglas para "insight"
- Escribe 2–3 párrafos (7–10 líneas en total).
- Usa segunda persona ("vos").
- Reformula brevemente la pregunta del usuario.
- Refleja tensiones, recursos internos y posibilidades de acción.
- Sé práctico y cercano, como un coach: ofrecé invitaciones o preguntas, no mandatos.
{policy["insight"]}
- Cerrá con una pregunta poderosa o reflexión abierta.

### Reglas para "miniStory"
- Escribe una fábula o cuento de 180–350 palabras.
- Debe tener inicio, desarrollo y desenlace claros.
- Usa personajes simples (viajero, jardinera, farero, ave, niño, artesana).
- Crea una escena concreta y visual (bosque, mar, montaña, ciudad, taller).
- El aprendizaje debe emerger del relato, no de explicaciones forzadas.
{policy["story"]}
- Cerrá SIEMPRE con esta línea final en mayúsculas:
  "{MORAL_PREFIX} <frase breve, amable y accionable>"

Devolvé SOLO JSON válido con claves "insight" y "miniStory". Comillas dobles en todo. Sin texto extra fuera del JSON."""


def build_input(question: str, cards: list, notes: list) -> str:
    lines = [f"Pregunta: {json.dumps(question, ensure_ascii=False)}", "Cartas elegidas (nombres):"]
    for i, card in enumerate(cards):
        lines.append(f"{i + 1}) {card.get('name')}")
    lines.append("Notas del usuario:")
    for n in notes:
        lines.append(f"- {n.get('note') or ''}")
    return "\n".join(lines).strip()


def validate_payload(data) -> tuple:
    """Check the decoded body. Returns (question, cards, notes) or raises ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Invalid payload: expected a JSON object")

    question = data.get("question")
    if not isinstance(question, str) or not sanitize_text(question):
        raise ValidationError("Invalid payload: question is required")

    cards = data.get("cards")
    if not isinstance(cards, list) or len(cards) != 3:
        raise ValidationError("Invalid payload: exactly 3 cards are required")
    for card in cards:
        if not isinstance(card, dict) or not isinstance(card.get("name"), str) or not card["name"].strip():
            raise ValidationError("Invalid payload: every card needs a name")

    notes = data.get("notes")
    if notes is None:
        notes = []
    if not isinstance(notes, list) or any(not isinstance(n, dict) for n in notes):
        raise ValidationError("Invalid payload: notes must be a list of objects")

    return sanitize_text(question), cards, notes
