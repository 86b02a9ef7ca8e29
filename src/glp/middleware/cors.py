"""CORS middleware configuration."""

from urllib.parse import urlsplit

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from glp.config import Settings


def allowed_origins(settings: Settings) -> list[str]:
    """Configured origins plus the origin of the learner frontend, deduplicated."""
    origins = list(settings.cors_origins)
    frontend = urlsplit(settings.frontend_base_url)
    if frontend.scheme and frontend.netloc:
        origin = f"{frontend.scheme}://{frontend.netloc}"
        if origin not in origins:
            origins.append(origin)
    return origins


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Progress endpoints are read and written from the browser only via GET/POST."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins(settings),
        allow_origin_regex=settings.cors_origin_regex,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-Id"],
        expose_headers=["X-Request-Id", "X-RateLimit-Remaining", "X-RateLimit-Limit"],
        max_age=600,
    )
