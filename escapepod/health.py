"""A minimal health-check endpoint."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from wsgiref.simple_server import make_server


def ok_app(environ: dict[str, Any], start_response: Callable[..., Any]) -> list[bytes]:
    """Answer "ok" on /ok and 404 elsewhere."""
    if environ.get("PATH_INFO") == "/ok":
        start_response("200 OK", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"ok"]
    start_response(
        "404 Not Found",
        [("Content-Type", "text/plain; charset=utf-8"), ("X-Content-Type-Options", "nosniff")],
    )
    return [b"404 page not found\n"]


def serve(port: int = 8080) -> None:
    """Serve the health check on ``port`` until interrupted."""
    with make_server("", port, ok_app) as server:
        server.serve_forever()