"""LearnGo code runner package.

``app`` (the FastAPI instance) is resolved lazily so that importing the
execution service or the config does not build the HTTP application."""

from __future__ import annotations

__all__ = ["app"]


def __getattr__(name: str):
    if name == "app":
        from .main import app as fastapi_app
        return fastapi_app
    raise AttributeError(f"module {__name__} has no attribute {name!r}")
