from __future__ import annotations

import json
from typing import Any, Callable, MutableMapping, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..core.exceptions import AuthenticationError, StoreError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone, new_id
from .model import Principal
from .provider import ALREADY_REGISTERED_CODE, AuthProvider


def _load_metadata(raw: Any) -> dict[str, Any]:
    if not raw:
        return {}
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return json.loads(raw)


class MySQLAuthProvider(AuthProvider):
    """Email/password principals stored in ``auth_users``.

    The signed-in principal id lives in ``session_store()`` (the Flask
    session in the web app, a private dict otherwise).
    """

    SESSION_KEY = "auth_principal_id"

    def __init__(
        self,
        conn_factory: DatabaseConnection,
        *,
        session_store: Optional[Callable[[], MutableMapping[str, Any]]] = None,
    ):
        self._conn_factory = conn_factory
        local: dict[str, Any] = {}
        self._session_store = session_store or (lambda: local)

    def _get(self, *, principal_id: Optional[str] = None, email: Optional[str] = None) -> Optional[dict]:
        column, value = ("id", principal_id) if principal_id else ("email", email)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT id, email, password_hash, metadata FROM auth_users WHERE {column}=%s",
                (value,),
            )
            return fetchone(cur)

    @staticmethod
    def _to_principal(row: dict) -> Principal:
        return Principal(id=row["id"], email=row["email"], metadata=_load_metadata(row.get("metadata")))

    def register(self, email: str, password: str, metadata: Optional[dict[str, Any]] = None) -> Principal:
        email = (email or "").strip().lower()
        if self._get(email=email):
            raise AuthenticationError("User already registered", ALREADY_REGISTERED_CODE)

        principal_id = new_id()
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO auth_users(id, email, password_hash, metadata) VALUES(%s,%s,%s,%s)",
                    (principal_id, email, generate_password_hash(password), json.dumps(metadata or {})),
                )
        except StoreError as e:
            if e.code == StoreError.DUPLICATE_KEY:
                raise AuthenticationError("User already registered", ALREADY_REGISTERED_CODE) from e
            raise AuthenticationError(e.message, "signup_failed") from e
        principal = Principal(id=principal_id, email=email, metadata=dict(metadata or {}))
        self._session_store()[self.SESSION_KEY] = principal.id
        return principal

    def sign_in(self, email: str, password: str) -> Principal:
        row = self._get(email=(email or "").strip().lower())
        if not row:
            raise AuthenticationError("Invalid login credentials", "invalid_credentials")
        try:
            ok = check_password_hash(row["password_hash"], password)
        except ValueError:
            # e.g. placeholder or corrupted hashes
            ok = False
        if not ok:
            raise AuthenticationError("Invalid login credentials", "invalid_credentials")

        principal = self._to_principal(row)
        self._session_store()[self.SESSION_KEY] = principal.id
        return principal

    def get_current_principal(self) -> Optional[Principal]:
        principal_id = self._session_store().get(self.SESSION_KEY)
        if not principal_id:
            return None
        row = self._get(principal_id=principal_id)
        return self._to_principal(row) if row else None

    def update_metadata(self, principal_id: str, metadata: dict[str, Any]) -> Principal:
        row = self._get(principal_id=principal_id)
        if not row:
            raise AuthenticationError("User not found", "user_not_found")
        merged = {**_load_metadata(row.get("metadata")), **metadata}
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE auth_users SET metadata=%s WHERE id=%s", (json.dumps(merged), principal_id))
        return Principal(id=row["id"], email=row["email"], metadata=merged)

    def sign_out(self) -> None:
        self._session_store().pop(self.SESSION_KEY, None)
