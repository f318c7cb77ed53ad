"""ReelHub API application package.

``app.main`` builds the FastAPI application at import time, so it is only
loaded when ``app`` or ``create_app`` is actually requested.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = ["app", "create_app"]


def __getattr__(name: str) -> Any:
    if name in __all__:
        return getattr(import_module("app.main"), name)
    raise AttributeError(f"module 'app' has no attribute {name}")
