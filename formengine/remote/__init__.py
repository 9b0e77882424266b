"""
formengine Remote Collaborators

Provides:
- OptionsProvider / RemoteValidator protocols
- httpx-backed HttpOptionsProvider (TTL cache) and HttpRemoteValidator
- OptionsLoader: sequence-stamped option fetches for dependent fields
- AsyncValidationCoordinator: debounced per-field remote checks
"""

from .protocols import (
    OptionsProvider,
    RemoteValidator,
    RemoteVerdict,
)
from .http import (
    HttpOptionsProvider,
    HttpRemoteValidator,
    REQUEST_FAILED_MESSAGE,
    request_failed,
    resolve_endpoint,
)
from .options_loader import OptionsLoader
from .coordinator import (
    AsyncValidationCoordinator,
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_INVALID_MESSAGE,
    interpret_response,
)

__all__ = [
    # Protocols
    "OptionsProvider",
    "RemoteValidator",
    "RemoteVerdict",
    # HTTP
    "HttpOptionsProvider",
    "HttpRemoteValidator",
    "REQUEST_FAILED_MESSAGE",
    "request_failed",
    "resolve_endpoint",
    # Loader
    "OptionsLoader",
    # Coordinator
    "AsyncValidationCoordinator",
    "DEFAULT_DEBOUNCE_MS",
    "DEFAULT_INVALID_MESSAGE",
    "interpret_response",
]
