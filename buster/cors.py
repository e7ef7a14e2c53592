"""WSGI middleware adding permissive CORS headers to every response."""

from __future__ import annotations

from collections.abc import Callable, Iterable

MAX_AGE = "86400"  # 24 hours
ALLOW_METHODS = "GET,POST,PUT,DELETE,OPTIONS"
ALLOW_ORIGIN = "*"


class CorsMiddleware:
    """Adds CORS headers and answers preflight OPTIONS requests directly."""

    def __init__(self, app: Callable) -> None:
        self.app = app

    def __call__(self, environ: dict, start_response: Callable) -> Iterable[bytes]:
        cors_headers = [
            ("Access-Control-Max-Age", MAX_AGE),
            ("Access-Control-Allow-Methods", ALLOW_METHODS),
            ("Access-Control-Allow-Origin", ALLOW_ORIGIN),
        ]
        requested = environ.get("HTTP_ACCESS_CONTROL_REQUEST_HEADERS", "")
        if requested:
            cors_headers.append(("Access-Control-Allow-Headers", requested))

        if environ.get("REQUEST_METHOD") == "OPTIONS":
            start_response("200 OK", cors_headers)
            return [b""]

        def _start(status, headers, exc_info=None):
            # Headers set by the wrapped application take precedence.
            own = {name.lower() for name, _ in headers}
            merged = [h for h in cors_headers if h[0].lower() not in own]
            merged.extend(headers)
            return start_response(status, merged, exc_info)

        return self.app(environ, _start)