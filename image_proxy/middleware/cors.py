from collections.abc import Mapping

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

PREFLIGHT_HEADERS = {**CORS_HEADERS, "Access-Control-Max-Age": "86400"}


def with_cors_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy of ``headers`` with the CORS and nosniff headers set on top."""
    return {**headers, **CORS_HEADERS, "X-Content-Type-Options": "nosniff"}
