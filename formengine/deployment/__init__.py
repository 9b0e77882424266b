"""
deployment/ - HTTP API

Provides:
- create_app: FastAPI application factory
"""

from .api import create_app, EvaluateRequest, MaskRequest

__all__ = [
    "create_app",
    "EvaluateRequest",
    "MaskRequest",
]
