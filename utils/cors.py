from flask import make_response

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, HX-Request, HX-Target, HX-Current-URL, HX-Trigger"
CORS_MAX_AGE = "86400"


def normalize_origin(origin: str) -> str:
    return (origin or "").strip().lower().rstrip("/")


def is_origin_allowed(origin: str, allowed_origins) -> bool:
    if not allowed_origins:
        # No list configured: any site may embed the booking page
        return True
    normalized = normalize_origin(origin)
    return any(normalize_origin(a) == normalized for a in allowed_origins)


def with_cors(resp, origin, allowed_origins):
    if origin and is_origin_allowed(origin, allowed_origins):
        resp.headers["Access-Control-Allow-Origin"] = origin
        resp.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        resp.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        resp.headers["Access-Control-Max-Age"] = CORS_MAX_AGE
        resp.headers.add("Vary", "Origin")
    return resp


def cors_preflight(origin, allowed_origins):
    resp = make_response("", 204)
    return with_cors(resp, origin, allowed_origins)
