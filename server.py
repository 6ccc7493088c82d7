"""
Local dev server: mounts /api/visual exactly as Vercel runs it.
Set env: OPENAI_API_KEY, optionally POSTGRES_URL or SUPABASE_URL + SUPABASE_SERVICE_ROLE_KEY.
Run: python server.py  →  http://127.0.0.1:5001/api/visual
"""
import json
import os

try:
    from dotenv import load_dotenv
    import pathlib
    env_path = pathlib.Path(__file__).resolve().parent / ".env"
    load_dotenv(dotenv_path=env_path)
except ImportError:
    pass

from flask import Flask, request, Response

from api import config
from api.visual import handle_request

app = Flask(__name__)


# ── Security headers ──

@app.after_request
def add_security_headers(response):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# --- API routes ---

@app.route("/api/visual", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
def visual():
    status, body, headers = handle_request(
        request.method,
        request.headers.get("Cookie", ""),
        request.get_data(),
    )
    resp = Response(json.dumps(body, ensure_ascii=False), status=status, mimetype="application/json")
    if status == 405:
        resp.headers["Allow"] = "POST"
    for name, value in headers.items():
        resp.headers[name] = value
    return resp


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    print(f"Visual reflection running at http://127.0.0.1:{port}/api/visual")
    if not config.get_openai_key():
        print("WARNING: OPENAI_API_KEY not set in .env — generation will fail.")
    print(f"Storage backend: {config.get_storage_backend()}")
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true")
