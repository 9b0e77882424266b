"""
formengine Runtime

Provides:
- FormSession: the rendering boundary of one live form
"""

from .session import FormSession

__all__ = [
    "FormSession",
]
