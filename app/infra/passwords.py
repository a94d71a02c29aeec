from __future__ import annotations

import hashlib
import hmac
import os
import secrets

PASSWORD_ITERATIONS = int(os.getenv("PASSWORD_ITERATIONS", "260000"))
_SCHEME = "pbkdf2_sha256"


def hash_password(raw_password: str, *, iterations: int | None = None) -> str:
    rounds = iterations or PASSWORD_ITERATIONS
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", raw_password.encode(), salt.encode(), rounds).hex()
    return f"{_SCHEME}${rounds}${salt}${digest}"


def verify_password(raw_password: str, stored: str) -> bool:
    try:
        scheme, rounds, salt, digest = stored.split("$", 3)
        iterations = int(rounds)
    except ValueError:
        return False
    if scheme != _SCHEME:
        return False
    candidate = hashlib.pbkdf2_hmac("sha256", raw_password.encode(), salt.encode(), iterations).hex()
    return hmac.compare_digest(candidate, digest)
