"""API helper utilities."""
from api.helpers.cors import allowed_origin, cors_headers, get_cors_headers, preflight_headers
from api.helpers.responses import error_response, success_response

__all__ = [
    "allowed_origin",
    "cors_headers",
    "error_response",
    "get_cors_headers",
    "preflight_headers",
    "success_response",
]
