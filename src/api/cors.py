"""CORS preflight responses for the public API routes."""

from fastapi import Response


def preflight(methods: str = "POST, OPTIONS", allow_any_origin: bool = True) -> Response:
    headers = {
        "Access-Control-Allow-Methods": methods,
        "Access-Control-Allow-Headers": "Content-Type",
    }
    if allow_any_origin:
        headers["Access-Control-Allow-Origin"] = "*"
    return Response(status_code=200, headers=headers)
