"""
Vercel serverless: POST /api/visual — insight + fable from a question, three
visual cards and the user's notes; stores the session when storage is configured.
Requires: OPENAI_API_KEY
Optional: MODEL, LLM_API, PROMPT_VARIANT, POSTGRES_URL or SUPABASE_URL + key
"""
import json
from http.server import BaseHTTPRequestHandler

from api import config
from api.errors import ReflectionError, ValidationError
from api.llm import get_generator
from api.normalize import normalize_output
from api.prompts import OUTPUT_SCHEMA, build_input, build_instructions, validate_payload
from api.security import resolve_anon_id
from api.storage import get_writer


def run_reflection(anon_id: str, question: str, cards: list, notes: list, generator, writer) -> dict:
    instructions = build_instructions(config.get_prompt_variant())
    user_input = build_input(question, cards, notes)

    raw = generator.generate(instructions, user_input, OUTPUT_SCHEMA)
    out = normalize_output(raw)

    session_id, stored = writer.save(anon_id, question, out["insight"], out["miniStory"], cards, notes)
    result = {"insight": out["insight"], "miniStory": out["miniStory"], "stored": stored}
    if session_id:
        result["sessionId"] = session_id
    return result


def handle_request(method: str, cookie_header: str, body, generator=None, writer=None) -> tuple:
    """Returns (status, payload, headers). Used by the Vercel handler and server.py."""
    headers = {}
    if (method or "").upper() != "POST":
        return 405, {"error": "Method not allowed"}, headers

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return 400, {"error": "Invalid JSON"}, headers
    try:
        data = json.loads(body) if body else {}
    except json.JSONDecodeError:
        return 400, {"error": "Invalid JSON"}, headers

    try:
        question, cards, notes = validate_payload(data)
    except ValidationError as e:
        return 400, {"error": str(e)}, headers

    anon_id, set_cookie = resolve_anon_id(cookie_header or "")
    if set_cookie:
        headers["Set-Cookie"] = set_cookie

    try:
        result = run_reflection(
            anon_id, question, cards, notes,
            generator or get_generator(),
            writer or get_writer(),
        )
    except ReflectionError as e:
        print("[api/visual error]", type(e).__name__, str(e))
        return e.status, {"error": str(e)}, headers
    except Exception as e:
        print("[api/visual error]", type(e).__name__, str(e))
        return 500, {"error": str(e) or "AI/DB error"}, headers
    return 200, result, headers


class handler(BaseHTTPRequestHandler):
    def do_POST(self):
        content_len = int(self.headers.get("Content-Length", 0))
        raw = self.rfile.read(content_len) if content_len else b""
        self._dispatch("POST", raw)

    def do_GET(self):
        self._dispatch("GET")

    def do_PUT(self):
        self._dispatch("PUT")

    def do_PATCH(self):
        self._dispatch("PATCH")

    def do_DELETE(self):
        self._dispatch("DELETE")

    def do_OPTIONS(self):
        self._dispatch("OPTIONS")

    def _dispatch(self, method, raw=b""):
        status, body, headers = handle_request(method, self.headers.get("Cookie", ""), raw)
        self._send(status, body, headers)

    def _send(self, status, body, headers=None):
        self.send_response(status)
        self.send_header("Content-type", "application/json")
        if status == 405:
            self.send_header("Allow", "POST")
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        self.wfile.write(json.dumps(body, ensure_ascii=False).encode("utf-8"))
