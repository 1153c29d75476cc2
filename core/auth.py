# core/auth.py
from __future__ import annotations

import hashlib
import hmac
import time
from typing import Optional

from fastapi import Header

from config import settings
from core.errors import Unauthorized


def _sign(payload: str) -> str:
    return hmac.new(
        settings.session_secret.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def issue_session_token(player_id: int, issued_at: Optional[int] = None) -> str:
    """
    Видає токен після логіну. Реєстрація/логін живуть у зовнішньому акаунт-сервісі:
    він імпортує цю функцію з тим самим session_secret, цей API лише перевіряє токени.
    """
    ts = int(issued_at if issued_at is not None else time.time())
    payload = f"{int(player_id)}.{ts}"
    return f"{payload}.{_sign(payload)}"


def verify_session_token(token: str) -> int:
    """
    "<player_id>.<issued_at>.<hmac>" -> player_id.
    """
    parts = (token or "").strip().split(".")
    if len(parts) != 3:
        raise Unauthorized("session token malformed")

    pid_raw, ts_raw, sig = parts
    payload = f"{pid_raw}.{ts_raw}"
    if not hmac.compare_digest(_sign(payload), sig):
        raise Unauthorized("session token signature invalid")

    try:
        player_id = int(pid_raw)
        issued_at = int(ts_raw)
    except ValueError:
        raise Unauthorized("session token malformed")

    if int(time.time()) - issued_at > settings.session_max_age:
        raise Unauthorized("session token expired")
    if player_id <= 0:
        raise Unauthorized("session token malformed")

    return player_id


async def get_current_player_id(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> int:
    if not authorization or not authorization.strip():
        raise Unauthorized("Authorization header missing")

    raw = authorization.strip()
    if raw.lower().startswith("bearer "):
        raw = raw[7:]
    return verify_session_token(raw)
