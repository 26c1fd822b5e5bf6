from functools import wraps

import bcrypt
from flask import current_app, jsonify, request

ADMIN_KEY_HEADER = "X-Admin-Key"


def hash_admin_key(plain_key: str) -> str:
    if not isinstance(plain_key, str) or len(plain_key) == 0:
        raise ValueError("Admin key must be a non-empty string")

    # bcrypt expects bytes
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(plain_key.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_admin_key(plain_key: str, key_hash: str) -> bool:
    if not plain_key or not key_hash:
        return False
    try:
        return bcrypt.checkpw(
            plain_key.encode("utf-8"),
            key_hash.encode("utf-8")
        )
    except ValueError:
        # malformed hash in config
        return False


def require_admin_key(fn):
    """
    Usage: @require_admin_key
    Guards the privileged booking endpoints with a shared key whose bcrypt
    hash lives in ADMIN_API_KEY_HASH.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        key_hash = current_app.config.get("ADMIN_API_KEY_HASH")
        if not key_hash:
            return jsonify(error="Admin access not configured"), 403

        provided = request.headers.get(ADMIN_KEY_HEADER)
        if not provided:
            return jsonify(error="Authentication required"), 401
        if not verify_admin_key(provided, key_hash):
            return jsonify(error="Forbidden"), 403

        return fn(*args, **kwargs)
    return wrapper
