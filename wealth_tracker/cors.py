"""
CORS middleware configuration.

Origins come from an explicit CSV list, a regex, or both. With neither set
no middleware is installed and browsers fall back to same-origin.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def add_cors(app: FastAPI, settings) -> bool:
    origins = settings.cors_origin_list() or []
    origin_regex = settings.CORS_ALLOW_ORIGIN_REGEX or None

    if not origins and not origin_regex:
        return False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_origin_regex=origin_regex,
        allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )
    return True
