"""
formengine Remote Collaborator Protocols

The core never talks to the network directly. Option lists and remote
validation verdicts come through these two collaborators; any
implementation must turn its own failures into an empty option list or
an invalid verdict instead of raising.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from formengine.core.models import FieldOption


@dataclass
class RemoteVerdict:
    """Interpreted outcome of one remote check."""
    valid: bool
    message: Optional[str] = None
    request_failed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"valid": self.valid}
        if self.message:
            result["message"] = self.message
        return result


@runtime_checkable
class OptionsProvider(Protocol):
    """Fetches option lists for dependent fields."""

    async def fetch_options(
        self,
        endpoint: str,
        params: Mapping[str, Any],
    ) -> List[FieldOption]:
        """
        Resolve ``{{param}}`` placeholders in ``endpoint`` and fetch.

        Failure yields an empty list.
        """
        ...


@runtime_checkable
class RemoteValidator(Protocol):
    """Checks a single value against a remote endpoint."""

    async def validate(
        self,
        endpoint: str,
        payload: Mapping[str, Any],
        method: str = "POST",
    ) -> Any:
        """
        Return the raw response payload.

        Failure yields ``{"valid": False, "message": "Validation request failed"}``.
        """
        ...
