from __future__ import annotations

import hashlib
import hmac


def hash_password(password: str) -> str:
    """SHA-256 hex digest (64 chars) of the UTF-8 encoded password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def check_password(stored_hash: str, password: str) -> bool:
    return hmac.compare_digest(stored_hash, hash_password(password))
