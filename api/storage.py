"""
Persistence for visual sessions: sessions, session_cards, session_notes.

Backend is chosen once per process from the environment:
  POSTGRES_URL / DATABASE_URL          -> PostgresWriter (psycopg)
  SUPABASE_URL + SUPABASE_*_KEY        -> SupabaseWriter
  nothing                              -> NullWriter (no connection attempted)

Writes are best-effort: a failure never blocks the generated content from
reaching the client, it only shows up as stored=false.
"""
import uuid

from api import config
from api.errors import StorageWriteFailure
from api.security import validate_uuid


def session_row(anon_id: str, question: str, insight: str, mini_story: str) -> dict:
    return {
        "id": str(uuid.uuid4()),
        "anon_id": anon_id,
        "question": question,
        "insight": insight,
        "mini_story": mini_story,
    }


def card_rows(session_id: str, cards: list) -> list:
    return [
        {
            "id": str(uuid.uuid4()),
            "session_id": session_id,
            "name": c.get("name"),
            "image_path": c.get("image_path") or None,
            "position": i + 1,
        }
        for i, c in enumerate(cards)
    ]


def note_rows(session_id: str, notes: list) -> list:
    """One row per note with non-empty text; card_name falls back to ''."""
    rows = []
    for n in notes:
        text = n.get("note")
        if not isinstance(text, str) or not text.strip():
            continue
        rows.append({
            "id": str(uuid.uuid4()),
            "session_id": session_id,
            "card_name": n.get("name") or n.get("card_name") or "",
            "note": text,
        })
    return rows


class NullWriter:
    """No storage configured. Not an error."""
    backend = "none"

    def save(self, anon_id, question, insight, mini_story, cards, notes) -> tuple:
        return None, False


class RowWriter:
    """Sequential inserts: session first, then cards in order, then notes."""
    backend = None

    def insert(self, table: str, row: dict) -> str:
        raise NotImplementedError

    def save(self, anon_id, question, insight, mini_story, cards, notes) -> tuple:
        """Returns (session_id, stored). session_id is None if the session row never landed."""
        if not validate_uuid(anon_id):
            print(f"[storage] skipping save, anon_id is not a UUID: {anon_id!r}")
            return None, False
        try:
            session_id = self.insert("sessions", session_row(anon_id, question, insight, mini_story))
        except Exception as e:
            print("[storage] session insert failed:", type(e).__name__, str(e))
            return None, False

        stored = True
        children = [("session_cards", r) for r in card_rows(session_id, cards)]
        children += [("session_notes", r) for r in note_rows(session_id, notes)]
        for table, row in children:
            try:
                self.insert(table, row)
            except Exception as e:
                print(f"[storage] {table} insert failed for session {session_id}:", type(e).__name__, str(e))
                stored = False
        return session_id, stored


class SupabaseWriter(RowWriter):
    backend = "supabase"

    def __init__(self, client):
        self.client = client

    def insert(self, table: str, row: dict) -> str:
        r = self.client.table(table).insert(row).execute()
        if r.data:
            return str(r.data[0].get("id") or row["id"])
        return row["id"]


class PostgresWriter(RowWriter):
    """
    Raw SQL over a single cached psycopg connection (autocommit).
    With atomic=True every row for a session goes in one transaction.
    """
    backend = "postgres"

    def __init__(self, url: str, atomic: bool = False, connect=None):
        self.url = url
        self.atomic = atomic
        self._connect_fn = connect
        self._conn = None

    def connection(self):
        if self._conn is None or self._conn.closed:
            connect = self._connect_fn
            if connect is None:
                import psycopg
                connect = psycopg.connect
            self._conn = connect(self.url, autocommit=True)
        return self._conn

    def insert(self, table: str, row: dict) -> str:
        cols = list(row.keys())
        query = f"insert into {table} ({', '.join(cols)}) values ({', '.join(['%s'] * len(cols))}) returning id"
        with self.connection().cursor() as cur:
            cur.execute(query, [row[c] for c in cols])
            result = cur.fetchone()
        if not result:
            raise StorageWriteFailure(f"{table} insert returned no id")
        return str(result[0])

    def save(self, anon_id, question, insight, mini_story, cards, notes) -> tuple:
        if not self.atomic:
            return super().save(anon_id, question, insight, mini_story, cards, notes)
        if not validate_uuid(anon_id):
            print(f"[storage] skipping save, anon_id is not a UUID: {anon_id!r}")
            return None, False
        try:
            with self.connection().transaction():
                session_id = self.insert("sessions", session_row(anon_id, question, insight, mini_story))
                for row in card_rows(session_id, cards):
                    self.insert("session_cards", row)
                for row in note_rows(session_id, notes):
                    self.insert("session_notes", row)
        except Exception as e:
            print("[storage] transaction rolled back:", type(e).__name__, str(e))
            return None, False
        return session_id, True


def build_writer():
    backend = config.get_storage_backend()
    if backend == "postgres":
        url = config.get_postgres_url()
        if url:
            return PostgresWriter(url, atomic=config.storage_atomic())
        print("[storage] STORAGE_BACKEND=postgres but no POSTGRES_URL / DATABASE_URL set")
    elif backend == "supabase":
        url, key = config.get_supabase_credentials()
        if url and key:
            from supabase import create_client
            try:
                return SupabaseWriter(create_client(url, key))
            except Exception as e:
                print("[storage] supabase client init failed:", type(e).__name__, str(e))
                return NullWriter()
        print("[storage] STORAGE_BACKEND=supabase but SUPABASE_URL / key missing")
    return NullWriter()


_writer = None


def get_writer():
    """Memoized per process."""
    global _writer
    if _writer is None:
        _writer = build_writer()
    return _writer


def reset_writer():
    global _writer
    _writer = None
