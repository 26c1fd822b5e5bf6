import secrets
import uuid

DEFAULT_TOKEN_BYTES = 24


def generate_booking_id() -> str:
    return str(uuid.uuid4())


def generate_confirmation_token(nbytes: int = DEFAULT_TOKEN_BYTES) -> str:
    # URL-safe so it can sit in a query string without encoding
    return secrets.token_urlsafe(nbytes)


def tokens_match(expected: str, provided: str) -> bool:
    """
    Constant-time comparison. An empty stored or supplied token never matches.
    """
    if not expected or not provided:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))
