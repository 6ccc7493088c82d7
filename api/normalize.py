"""
LLM output normalizer: turn a raw Responses / Chat Completions result into
{"insight": str, "miniStory": str}.

Order: native json block -> output text -> unwrap ``` fence -> json.loads ->
one repair pass -> json.loads. Anything past that is a hard failure.
"""
import json
import re

from api.errors import UpstreamEmptyField, UpstreamEmptyResponse, UpstreamMalformedJSON

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z0-9_]+)\s*:")


def _get(obj, name, default=None):
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def native_json(raw) -> dict | None:
    """Responses API: a content block typed 'json' carries the parsed payload."""
    for block in _get(raw, "output") or []:
        for item in _get(block, "content") or []:
            payload = _get(item, "json")
            if _get(item, "type") == "json" and isinstance(payload, dict):
                return payload
    return None


def output_text(raw) -> str:
    """Best-effort plain text from either API shape."""
    if isinstance(raw, str):
        return raw.strip()
    text = _get(raw, "output_text")
    if not text:
        choices = _get(raw, "choices") or []
        if choices:
            text = _get(_get(choices[0], "message"), "content")
    if not isinstance(text, str):
        return ""
    return text.strip()


def strip_fence(text: str) -> str:
    m = _FENCE_RE.search(text)
    return m.group(1) if m else text


def repair_json(text: str) -> str:
    """Quote bare keys and swap single quotes for double quotes. Apostrophes inside values get mangled too."""
    return _BARE_KEY_RE.sub(r'\1"\2":', text).replace("'", '"')


def parse_json_text(text: str) -> dict:
    body = strip_fence(text)
    try:
        out = json.loads(body)
    except json.JSONDecodeError:
        try:
            out = json.loads(repair_json(body))
        except json.JSONDecodeError as e:
            raise UpstreamMalformedJSON(f"AI returned invalid JSON: {e}") from e
    if not isinstance(out, dict):
        raise UpstreamMalformedJSON("AI returned JSON that is not an object")
    return out


def normalize_output(raw) -> dict:
    out = native_json(raw)
    if out is None:
        text = output_text(raw)
        if not text:
            raise UpstreamEmptyResponse("Empty response from AI")
        out = parse_json_text(text)

    insight = out.get("insight")
    mini_story = out.get("miniStory")
    insight = insight.strip() if isinstance(insight, str) else ""
    mini_story = mini_story.strip() if isinstance(mini_story, str) else ""
    if not insight or not mini_story:
        raise UpstreamEmptyField("AI returned an empty insight or miniStory")
    return {"insight": insight, "miniStory": mini_story}
